from .base import (
    DETECTOR_REGISTRY,
    DetectorParameter,
    PulseDetector,
    create_detector,
    register_detector,
)
from .filters import bounded_peaks, peak_times, proximity_vetoed, within_bounds
from .threshold import SpeThresholdDetector

__all__ = [
    "PulseDetector",
    "DetectorParameter",
    "DETECTOR_REGISTRY",
    "register_detector",
    "create_detector",
    "SpeThresholdDetector",
    "within_bounds",
    "bounded_peaks",
    "peak_times",
    "proximity_vetoed",
]
