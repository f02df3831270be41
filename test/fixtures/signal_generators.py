"""
Synthetic PMT waveform generation utilities for testing.

These generators produce deterministic test waveforms with known properties
that can be used to validate the SPE analysis chain.

Conventions:
- Raw waveforms are negative-going: an SPE pulls the ADC value below the
  baseline, exactly like the digitizer output.
- Baseline-referenced signals (what the extractors consume) are
  positive-going.
- Use seeded RNG for reproducibility when random noise is involved.
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np


def make_triangle(amplitude: float, half_width: int) -> np.ndarray:
    """Symmetric triangular pulse of `2 * half_width - 1` samples.

    The value at offset `k` from the centre is `amplitude * (1 - |k| / half_width)`,
    so the outermost samples are `amplitude / half_width` and the next ones
    (not included) would be zero.

    Example:
        >>> make_triangle(100.0, 10)[9]
        100.0
    """
    k = np.arange(-(half_width - 1), half_width, dtype=np.float64)
    return amplitude * (1.0 - np.abs(k) / half_width)


def make_signal(
    n_samples: int,
    peaks: Sequence[int],
    *,
    amplitude: float = 100.0,
    half_width: int = 10,
) -> np.ndarray:
    """Baseline-referenced signal (zero baseline) with triangles at `peaks`."""
    signal = np.zeros(n_samples, dtype=np.float64)
    pulse = make_triangle(amplitude, half_width)
    for p in peaks:
        start = p - (half_width - 1)
        end = start + pulse.size
        if start < 0 or end > n_samples:
            raise ValueError(f"pulse at {p} does not fit in {n_samples} samples")
        signal[start:end] += pulse
    return signal


def make_alternating_noise(n_samples: int, amplitude: float = 1.0) -> np.ndarray:
    """Deterministic +/- `amplitude` square noise, starting positive.

    Its population stdev is `amplitude` and it never exceeds `amplitude`.
    """
    signs = np.where(np.arange(n_samples) % 2 == 0, 1.0, -1.0)
    return amplitude * signs


def make_gaussian_noise(n_samples: int, sigma: float, *, seed: Optional[int] = None) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.normal(0.0, sigma, n_samples)


def make_raw_waveform(
    n_samples: int,
    peaks: Sequence[int],
    *,
    baseline: float = 1000.0,
    amplitude: float = 100.0,
    half_width: int = 10,
    noise: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Raw digitizer-like samples: baseline plus noise minus SPE triangles."""
    raw = np.full(n_samples, baseline, dtype=np.float64)
    if noise is not None:
        raw += np.asarray(noise, dtype=np.float64)
    if peaks:
        raw -= make_signal(n_samples, peaks, amplitude=amplitude, half_width=half_width)
    return raw
