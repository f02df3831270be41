from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from core.detection.filters import bounded_peaks, proximity_vetoed
from shared.models import IntegralSet

from .calibration import CalibrationSlot
from .metrics import local_baseline, peak_amplitude, search_bound, window_sum

logger = logging.getLogger(__name__)


class ShapeAccumulator:
    """Adds the signal window around every accepted peak into a slot's shape sum."""

    def __init__(
        self,
        low_bin: int,
        high_bin: int,
        *,
        proximity_veto: bool = False,
        proximity_window: float = 0.1,
    ) -> None:
        self.low_bin = int(low_bin)
        self.high_bin = int(high_bin)
        self.proximity_veto = bool(proximity_veto)
        self.proximity_window = float(proximity_window)

    def select(self, peaks: Sequence[int], times: Sequence[float], n_samples: int) -> list[int]:
        """Peaks that contribute to the average shape.

        `times` holds the timestamp of every entry of `peaks`; the veto compares
        against all accepted peaks, including those too close to the edge.
        """
        if self.proximity_veto:
            vetoed = proximity_vetoed(times, self.proximity_window)
            candidates = [p for p, v in zip(peaks, vetoed) if not v]
        else:
            candidates = list(peaks)
        return bounded_peaks(candidates, n_samples, self.low_bin, self.high_bin)

    def accumulate(
        self,
        slot: CalibrationSlot,
        signal: np.ndarray,
        peaks: Sequence[int],
        times: Sequence[float],
    ) -> int:
        data = np.asarray(signal, dtype=np.float64)
        selected = self.select(peaks, times, data.shape[0])
        for peak in selected:
            slot.add_shape(data[peak - self.low_bin : peak + self.high_bin + 1])
            slot.add_count()
        return len(selected)


class AmplitudeExtractor:
    """Records the baseline-referenced height of every accepted peak."""

    def __init__(self, low_bin: int, high_bin: int) -> None:
        self.low_bin = int(low_bin)
        self.high_bin = int(high_bin)

    def extract(
        self,
        slot: CalibrationSlot,
        signal: np.ndarray,
        peaks: Sequence[int],
        *,
        count: bool = False,
    ) -> int:
        data = np.asarray(signal, dtype=np.float64)
        selected = bounded_peaks(peaks, data.shape[0], self.low_bin, self.high_bin)
        for peak in selected:
            slot.add_amplitude(peak_amplitude(data, peak))
            if count:
                slot.add_count()
        return len(selected)


class IntegralExtractor:
    """Integrates each accepted peak with three bound policies and two baselines.

    Bound policies:
        zero: walk out until the signal drops to `zero_threshold`
            (0 after local baseline subtraction).
        thresh: walk out until the signal drops to the detection threshold.
        manual: fixed `manual_bound_lo` / `manual_bound_hi` offsets.

    The "B" variants subtract a local baseline, the mean of the samples
    `local_baseline_offset` before and after the peak, and limit each walk to
    `max_search_steps`.
    """

    def __init__(
        self,
        low_bin: int,
        high_bin: int,
        *,
        manual_bound_lo: int,
        manual_bound_hi: int,
        zero_threshold: float = 10.0,
        local_baseline_offset: int = 50,
        max_search_steps: int = 50,
    ) -> None:
        self.low_bin = int(low_bin)
        self.high_bin = int(high_bin)
        self.manual_bound_lo = int(manual_bound_lo)
        self.manual_bound_hi = int(manual_bound_hi)
        self.zero_threshold = float(zero_threshold)
        self.local_baseline_offset = int(local_baseline_offset)
        self.max_search_steps = int(max_search_steps)

    def _search_integral(
        self,
        data: np.ndarray,
        peak: int,
        level: float,
        max_steps: Optional[int],
    ) -> Optional[float]:
        lo = search_bound(data, peak, -1, level, max_steps)
        hi = search_bound(data, peak, +1, level, max_steps)
        return window_sum(data, peak, lo, hi)

    def compute(self, signal: np.ndarray, peak: int, threshold: float) -> IntegralSet:
        data = np.asarray(signal, dtype=np.float64)
        values = {
            "zeromode": self._search_integral(data, peak, self.zero_threshold, None),
            "threshmode": self._search_integral(data, peak, threshold, None),
            "manualmode": window_sum(data, peak, self.manual_bound_lo, self.manual_bound_hi),
        }
        bsl = local_baseline(data, peak, self.local_baseline_offset)
        if bsl is None:
            logger.debug("Local baseline probes around peak %d leave the waveform", peak)
        else:
            local = data - bsl
            values["zeromodeB"] = self._search_integral(local, peak, 0.0, self.max_search_steps)
            values["threshmodeB"] = self._search_integral(local, peak, threshold, self.max_search_steps)
            values["manualmodeB"] = window_sum(local, peak, self.manual_bound_lo, self.manual_bound_hi)
        return IntegralSet(**values)

    def extract(
        self,
        slot: CalibrationSlot,
        signal: np.ndarray,
        peaks: Sequence[int],
        threshold: float,
        *,
        count: bool = False,
    ) -> int:
        data = np.asarray(signal, dtype=np.float64)
        selected = bounded_peaks(peaks, data.shape[0], self.low_bin, self.high_bin)
        for peak in selected:
            slot.add_integrals(self.compute(data, peak, threshold))
            if count:
                slot.add_count()
        return len(selected)


__all__ = ["ShapeAccumulator", "AmplitudeExtractor", "IntegralExtractor"]
