"""SPE calibration analysis: settings, feature extraction and per-channel accumulation."""

from .calibration import CalibrationSlot, CalibrationTable, ChannelResult, SpeShape
from .extractors import AmplitudeExtractor, IntegralExtractor, ShapeAccumulator
from .settings import SpeAnalysisSettings, load_settings
from .spe_analyzer import AnalyzerStats, SpeAnalyzer

__all__ = [
    "AmplitudeExtractor",
    "AnalyzerStats",
    "CalibrationSlot",
    "CalibrationTable",
    "ChannelResult",
    "IntegralExtractor",
    "ShapeAccumulator",
    "SpeAnalysisSettings",
    "SpeAnalyzer",
    "SpeShape",
    "load_settings",
]
