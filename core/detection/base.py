from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Protocol, Type

import numpy as np

from shared.models import DetectionResult


@dataclass
class DetectorParameter:
    name: str
    default: float | int | bool
    min: float | None = None
    max: float | None = None
    help: str = ""


class PulseDetector(Protocol):
    name: str
    display_name: str

    @property
    def parameters(self) -> Mapping[str, DetectorParameter]:
        ...

    def configure(self, **params) -> None:
        ...

    def reset(self) -> None:
        """Called when a calibration run (re)starts."""
        ...

    def detect(self, signal: np.ndarray, threshold: float) -> DetectionResult:
        """Return the pulses found in one baseline-referenced waveform."""
        ...


DETECTOR_REGISTRY: Dict[str, Type[PulseDetector]] = {}


def register_detector(cls: Type[PulseDetector]) -> Type[PulseDetector]:
    if not hasattr(cls, "name"):
        raise ValueError(f"Detector {cls} must have a 'name' attribute")
    DETECTOR_REGISTRY[cls.name] = cls
    return cls


def create_detector(name: str, **params) -> PulseDetector:
    try:
        cls = DETECTOR_REGISTRY[name]
    except KeyError:
        known = ", ".join(sorted(DETECTOR_REGISTRY)) or "none"
        raise KeyError(f"Unknown detector {name!r} (registered: {known})") from None
    detector = cls()
    if params:
        detector.configure(**params)
    return detector
