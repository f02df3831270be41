"""Core signal-processing stages: noise estimation and pulse detection."""

from .detection import DETECTOR_REGISTRY, SpeThresholdDetector, create_detector
from .noise import baseline_subtract, estimate_noise, noise_windows
from shared.models import DetectionResult, NoiseStatistics, Pulse, Waveform

__all__ = [
    "Waveform",
    "NoiseStatistics",
    "Pulse",
    "DetectionResult",
    "estimate_noise",
    "noise_windows",
    "baseline_subtract",
    "DETECTOR_REGISTRY",
    "SpeThresholdDetector",
    "create_detector",
]
