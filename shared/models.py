from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np


def _freeze_array(array: np.ndarray, *, ndim: int | None = None, dtype=None) -> np.ndarray:
    """Return a read-only, C-contiguous copy of `array`, validating dimensions."""
    arr = np.array(array, copy=True, order="C", dtype=dtype)
    if ndim is not None and arr.ndim != ndim:
        raise ValueError(f"array must be {ndim}D, got {arr.ndim}D")
    arr.setflags(write=False)
    return arr


# ----------------------------
# Readout data models
# ----------------------------

@dataclass(frozen=True)
class Waveform:
    """One digitized optical-detector waveform.

    Attributes:
        channel: Raw optical channel number.
        samples: Signed ADC samples in readout order.
        start_time: Timestamp of the first sample (microseconds).
        electronics: Readout electronics tag (e.g. "daphne"), used to pick
            the sample-rate regime when `sample_rate` is not given.
        sample_rate: Optional explicit sample rate in Hz.
    """

    channel: int
    samples: np.ndarray = field(repr=False)
    start_time: float = 0.0
    electronics: str = ""
    sample_rate: Optional[float] = None

    def __post_init__(self) -> None:
        if self.channel < 0:
            raise ValueError("channel must be non-negative")
        if self.sample_rate is not None and not self.sample_rate > 0:
            raise ValueError("sample_rate must be positive")
        samples = _freeze_array(self.samples, ndim=1)
        if samples.size == 0:
            raise ValueError("samples must not be empty")
        object.__setattr__(self, "samples", samples)

    @property
    def n_samples(self) -> int:
        return self.samples.shape[0]

    def __len__(self) -> int:
        return self.n_samples


@dataclass(frozen=True)
class NoiseStatistics:
    """Baseline level and noise spread estimated from pulse-free windows."""

    mean: float
    stdev: float

    def __post_init__(self) -> None:
        if self.stdev < 0:
            raise ValueError("stdev must be non-negative")

    def threshold(self, n_stdev: float) -> float:
        return self.stdev * n_stdev


@dataclass(frozen=True)
class Pulse:
    """A threshold-delimited excursion of the baseline-referenced signal."""

    start_index: int
    end_index: int
    peak_index: int
    peak_value: float

    def __post_init__(self) -> None:
        if self.start_index < 0:
            raise ValueError("start_index must be non-negative")
        if self.end_index < self.start_index:
            raise ValueError("end_index must not precede start_index")

    @property
    def width(self) -> int:
        return self.end_index - self.start_index


@dataclass(frozen=True)
class DetectionResult:
    """Pulses accepted from one waveform scan.

    `overflow` is set when the scan was cut short by the pulse-count limit;
    such a result must not be used downstream.
    """

    pulses: Tuple[Pulse, ...]
    threshold: float
    overflow: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "pulses", tuple(self.pulses))

    @property
    def peak_indices(self) -> Tuple[int, ...]:
        return tuple(p.peak_index for p in self.pulses)

    @property
    def ok(self) -> bool:
        return bool(self.pulses) and not self.overflow

    def __len__(self) -> int:
        return len(self.pulses)


@dataclass(frozen=True)
class IntegralSet:
    """The six integrals of one peak.

    A value is None when its window ran outside the sample array.
    """

    zeromode: Optional[float] = None
    threshmode: Optional[float] = None
    manualmode: Optional[float] = None
    zeromodeB: Optional[float] = None
    threshmodeB: Optional[float] = None
    manualmodeB: Optional[float] = None

    def items(self):
        for key in INTEGRAL_KEYS:
            yield key, getattr(self, key)


INTEGRAL_KEYS: Tuple[str, ...] = (
    "zeromode",
    "threshmode",
    "manualmode",
    "zeromodeB",
    "threshmodeB",
    "manualmodeB",
)


class OutcomeStatus(enum.Enum):
    SKIPPED = "skipped"
    FAILED = "failed"
    SUCCESS = "success"


@dataclass(frozen=True)
class AnalysisOutcome:
    """Per-waveform result reported by the analyzer."""

    channel: int
    status: OutcomeStatus
    n_spes: int = 0
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


__all__ = [
    "Waveform",
    "NoiseStatistics",
    "Pulse",
    "DetectionResult",
    "IntegralSet",
    "INTEGRAL_KEYS",
    "OutcomeStatus",
    "AnalysisOutcome",
]
