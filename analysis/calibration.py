from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Sequence, Tuple

import numpy as np

from shared.models import INTEGRAL_KEYS, IntegralSet

logger = logging.getLogger(__name__)

HistLayout = Tuple[int, float, float]


@dataclass(frozen=True)
class SpeShape:
    """Average SPE waveform around the peak, in baseline-referenced ADC."""

    values: np.ndarray = field(repr=False)
    count: int
    low_bin: int
    high_bin: int

    def __post_init__(self) -> None:
        arr = np.array(self.values, dtype=np.float64, copy=True)
        if arr.shape != (self.low_bin + self.high_bin + 1,):
            raise ValueError("values length must equal low_bin + high_bin + 1")
        arr.setflags(write=False)
        object.__setattr__(self, "values", arr)

    @property
    def offsets(self) -> np.ndarray:
        """Sample offset from the peak of every value."""
        return np.arange(-self.low_bin, self.high_bin + 1)


@dataclass(frozen=True)
class ChannelResult:
    """Finalized calibration artifacts of one channel."""

    channel: int
    shape: SpeShape
    amplitudes: np.ndarray = field(repr=False)
    integrals: Mapping[str, np.ndarray] = field(repr=False)
    amp_hist: HistLayout = (50, 0.0, 200.0)
    integ_hist: HistLayout = (50, 0.0, 500.0)

    @property
    def n_spes(self) -> int:
        return self.shape.count

    def amplitude_histogram(self) -> Tuple[np.ndarray, np.ndarray]:
        bins, low, high = self.amp_hist
        return np.histogram(self.amplitudes, bins=int(bins), range=(low, high))

    def integral_histogram(self, key: str) -> Tuple[np.ndarray, np.ndarray]:
        if key not in self.integrals:
            raise KeyError(f"Unknown integral mode {key!r}; expected one of {INTEGRAL_KEYS}")
        bins, low, high = self.integ_hist
        return np.histogram(self.integrals[key], bins=int(bins), range=(low, high))


class CalibrationSlot:
    """Running SPE statistics of one tracked channel.

    Mutating methods hold the slot lock, so several producers may feed the
    same slot. Partial slots built elsewhere are folded in with `merge`.
    """

    def __init__(self, channel: int, low_bin: int, high_bin: int) -> None:
        if low_bin < 0 or high_bin < 0:
            raise ValueError("low_bin and high_bin must be non-negative")
        self.channel = int(channel)
        self.low_bin = int(low_bin)
        self.high_bin = int(high_bin)
        self._shape_sum = np.zeros(self.low_bin + self.high_bin + 1, dtype=np.float64)
        self._count = 0
        self._amplitudes: List[float] = []
        self._integrals: Dict[str, List[float]] = {key: [] for key in INTEGRAL_KEYS}
        self._finalized = False
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return self._count

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def shape_sum(self) -> np.ndarray:
        with self._lock:
            return self._shape_sum.copy()

    @property
    def amplitudes(self) -> np.ndarray:
        with self._lock:
            return np.asarray(self._amplitudes, dtype=np.float64)

    def integrals(self, key: str) -> np.ndarray:
        with self._lock:
            return np.asarray(self._integrals[key], dtype=np.float64)

    def _check_open(self) -> None:
        if self._finalized:
            raise RuntimeError(f"calibration slot for channel {self.channel} is already finalized")

    def add_shape(self, window: np.ndarray) -> None:
        arr = np.asarray(window, dtype=np.float64)
        if arr.shape != self._shape_sum.shape:
            raise ValueError(
                f"shape window has {arr.shape[0] if arr.ndim else 0} samples, "
                f"expected {self._shape_sum.shape[0]}"
            )
        with self._lock:
            self._check_open()
            self._shape_sum += arr

    def add_count(self, n: int = 1) -> None:
        with self._lock:
            self._check_open()
            self._count += int(n)

    def add_amplitude(self, value: float) -> None:
        with self._lock:
            self._check_open()
            self._amplitudes.append(float(value))

    def add_integrals(self, values: IntegralSet) -> None:
        with self._lock:
            self._check_open()
            for key, value in values.items():
                if value is not None:
                    self._integrals[key].append(float(value))

    def merge(self, other: "CalibrationSlot") -> None:
        if (other.low_bin, other.high_bin) != (self.low_bin, self.high_bin):
            raise ValueError("cannot merge slots with different shape windows")
        if other.finalized:
            raise ValueError("cannot merge a finalized slot")
        with other._lock:
            shape_sum = other._shape_sum.copy()
            count = other._count
            amplitudes = list(other._amplitudes)
            integrals = {key: list(vals) for key, vals in other._integrals.items()}
        with self._lock:
            self._check_open()
            self._shape_sum += shape_sum
            self._count += count
            self._amplitudes.extend(amplitudes)
            for key, vals in integrals.items():
                self._integrals[key].extend(vals)

    def finalize(self) -> None:
        """Turn the running shape sum into the average shape. Runs once."""
        with self._lock:
            if self._finalized:
                return
            if self._count > 0:
                self._shape_sum /= self._count
            else:
                logger.warning("No SPEs collected for channel %d; average shape left at zero", self.channel)
            self._finalized = True

    def result(self, *, amp_hist: HistLayout = (50, 0.0, 200.0), integ_hist: HistLayout = (50, 0.0, 500.0)) -> ChannelResult:
        with self._lock:
            shape = SpeShape(self._shape_sum, self._count, self.low_bin, self.high_bin)
            amplitudes = np.asarray(self._amplitudes, dtype=np.float64)
            integrals = {key: np.asarray(vals, dtype=np.float64) for key, vals in self._integrals.items()}
        return ChannelResult(
            channel=self.channel,
            shape=shape,
            amplitudes=amplitudes,
            integrals=integrals,
            amp_hist=tuple(amp_hist),
            integ_hist=tuple(integ_hist),
        )


class CalibrationTable:
    """Calibration slots of a run, indexed by calibration-slot index."""

    def __init__(self, channels: Sequence[int], low_bin: int, high_bin: int) -> None:
        self._slots: Tuple[CalibrationSlot, ...] = tuple(
            CalibrationSlot(ch, low_bin, high_bin) for ch in channels
        )
        self._finalized = False

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> CalibrationSlot:
        return self._slots[index]

    def __iter__(self) -> Iterator[CalibrationSlot]:
        return iter(self._slots)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def finalize(self) -> None:
        if self._finalized:
            return
        for slot in self._slots:
            slot.finalize()
        self._finalized = True

    def results(self, **layouts) -> Dict[int, ChannelResult]:
        return {slot.channel: slot.result(**layouts) for slot in self._slots}


__all__ = ["SpeShape", "ChannelResult", "CalibrationSlot", "CalibrationTable"]
