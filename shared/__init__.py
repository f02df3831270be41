"""
Shared data structures used by the detection core and the analysis layer.
"""

from .channel_map import ChannelMap, OpDetChannel
from .models import (
    AnalysisOutcome,
    DetectionResult,
    INTEGRAL_KEYS,
    IntegralSet,
    NoiseStatistics,
    OutcomeStatus,
    Pulse,
    Waveform,
)

__all__ = [
    "AnalysisOutcome",
    "ChannelMap",
    "DetectionResult",
    "INTEGRAL_KEYS",
    "IntegralSet",
    "NoiseStatistics",
    "OpDetChannel",
    "OutcomeStatus",
    "Pulse",
    "Waveform",
]
