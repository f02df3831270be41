"""Baseline and noise estimation for raw PMT waveforms.

- estimate_noise: baseline mean and noise stdev from two pulse-free windows
- noise_windows: index ranges of those windows
- baseline_subtract: inverted, baseline-referenced signal
"""
from __future__ import annotations

from typing import Tuple

import numpy as np

from shared.models import NoiseStatistics


def noise_windows(
    samples: np.ndarray,
    *,
    nbmin_factor: float,
    nbmax_factor: float,
    n2bmin_factor: float,
) -> Tuple[slice, slice]:
    """Return the pre-peak and post-peak noise windows as slices.

    The pre-peak window spans `[nbmin_factor * k, nbmax_factor * k]` (inclusive),
    where `k` is the index of the most negative sample. The post-peak window
    spans `[n2bmin_factor * n, n)`.
    """
    arr = np.asarray(samples)
    n = arr.shape[0]
    extreme = int(np.argmin(arr))
    lo = max(0, int(nbmin_factor * extreme))
    hi = min(n - 1, int(nbmax_factor * extreme))
    lo2 = max(0, int(n2bmin_factor * n))
    return slice(lo, hi + 1), slice(lo2, n)


def estimate_noise(
    samples: np.ndarray,
    *,
    nbmin_factor: float,
    nbmax_factor: float,
    n2bmin_factor: float,
) -> NoiseStatistics:
    """Estimate the baseline level and noise spread of a raw waveform.

    The caller must configure the factors so that the two windows hold at
    least one sample between them.
    """
    arr = np.asarray(samples, dtype=np.float64)
    pre, post = noise_windows(
        arr,
        nbmin_factor=nbmin_factor,
        nbmax_factor=nbmax_factor,
        n2bmin_factor=n2bmin_factor,
    )
    noise = np.concatenate([arr[pre], arr[post]])
    mean = float(np.mean(noise))
    # population variance of the baseline-referenced values
    deviations = mean - noise
    stdev = float(np.sqrt(np.mean(deviations * deviations)))
    return NoiseStatistics(mean=mean, stdev=stdev)


def baseline_subtract(samples: np.ndarray, noise: NoiseStatistics) -> np.ndarray:
    """Return `mean - sample` for every sample; SPE pulses come out positive."""
    arr = np.asarray(samples, dtype=np.float64)
    return noise.mean - arr


__all__ = ["noise_windows", "estimate_noise", "baseline_subtract"]
