"""Peak selection applied between pulse detection and feature extraction."""
from __future__ import annotations

from typing import List, Sequence

import numpy as np


def within_bounds(peak: int, n_samples: int, low_bins: int, high_bins: int) -> bool:
    """True when the window `[peak - low_bins, peak + high_bins]` lies inside the waveform.

    The last window sample must exist, so a peak with `peak + high_bins == n_samples`
    is dropped for amplitudes and integrals as well as for the shape.
    """
    return peak - low_bins >= 0 and peak + high_bins <= n_samples - 1


def bounded_peaks(
    peaks: Sequence[int], n_samples: int, low_bins: int, high_bins: int
) -> List[int]:
    return [p for p in peaks if within_bounds(p, n_samples, low_bins, high_bins)]


def peak_times(
    peaks: Sequence[int], start_time: float, sample_rate: float
) -> np.ndarray:
    """Convert peak sample indices to timestamps in microseconds."""
    idx = np.asarray(peaks, dtype=np.float64)
    return start_time + idx * (1e6 / sample_rate)


def proximity_vetoed(times: Sequence[float], window: float) -> np.ndarray:
    """Flag peaks that have another peak strictly less than `window` before them.

    Only an earlier neighbour vetoes a peak; a later one never does.
    """
    t = np.asarray(times, dtype=np.float64)
    if t.size == 0:
        return np.zeros(0, dtype=bool)
    separation = t[:, None] - t[None, :]
    return np.any((separation > 0) & (separation < window), axis=1)


__all__ = ["within_bounds", "bounded_peaks", "peak_times", "proximity_vetoed"]
