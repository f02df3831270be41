"""Window and bound helpers for SPE feature extraction.

This module provides the small signal-processing pieces shared by the
extractors:
- search_bound: walk away from a peak until the signal drops to a level
- window_sum: integrate a closed window around a peak
- local_baseline: two-point baseline estimate around a peak
- peak_amplitude: signal value at a peak
"""
from typing import Optional

import numpy as np


def search_bound(
    signal: np.ndarray,
    peak: int,
    step: int,
    level: float,
    max_steps: Optional[int] = None,
) -> int:
    """Return the offset of the last sample above `level` walking from `peak`.

    The walk goes in direction `step` (-1 or +1) and stops on the first
    sample at or below `level`, on the step that reaches `max_steps`, or when
    it would leave the array. The stopping sample itself is excluded, so the
    result is one less than the number of steps taken (-1 when the peak is
    already at or below the level).
    """
    data = np.asarray(signal)
    n = data.shape[0]
    offset = 0
    value = float(data[peak])
    while value > level:
        offset += 1
        idx = peak + step * offset
        if idx < 0 or idx >= n:
            break
        value = float(data[idx])
        if max_steps is not None and offset >= max_steps:
            break
    return offset - 1


def window_sum(signal: np.ndarray, peak: int, lo: int, hi: int) -> Optional[float]:
    """Sum `signal[peak - lo : peak + hi + 1]`, or None if it leaves the array.

    An inverted window (`lo + hi < 0`) sums to zero.
    """
    data = np.asarray(signal)
    first = peak - lo
    last = peak + hi
    if last < first:
        return 0.0
    if first < 0 or last >= data.shape[0]:
        return None
    return float(np.sum(data[first : last + 1], dtype=np.float64))


def local_baseline(signal: np.ndarray, peak: int, offset: int) -> Optional[float]:
    """Average of the samples `offset` before and after the peak."""
    data = np.asarray(signal)
    if peak - offset < 0 or peak + offset >= data.shape[0]:
        return None
    return 0.5 * (float(data[peak - offset]) + float(data[peak + offset]))


def peak_amplitude(signal: np.ndarray, peak: int) -> float:
    return float(np.asarray(signal)[peak])
