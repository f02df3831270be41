from __future__ import annotations

import numpy as np
import pytest

from core.detection.filters import bounded_peaks, peak_times, proximity_vetoed, within_bounds


class TestBoundaryCheck:
    @pytest.mark.parametrize(
        "peak, expected",
        [(19, False), (20, True), (39, True), (40, False)],
    )
    def test_window_must_fit(self, peak, expected):
        # window [peak - 20, peak + 60] inside 100 samples
        assert within_bounds(peak, 100, 20, 60) is expected

    def test_window_ending_one_past_the_last_sample_is_rejected(self):
        # 40 + 60 == 100 would need a sample at index 100
        assert not within_bounds(40, 100, 20, 60)
        assert within_bounds(40, 101, 20, 60)

    def test_bounded_peaks_keeps_order(self):
        assert bounded_peaks([5, 25, 30, 95], 100, 20, 60) == [25, 30]


class TestProximityVeto:
    def test_later_peak_is_vetoed(self):
        vetoed = proximity_vetoed([1.00, 1.06, 2.00], 0.1)
        assert vetoed.tolist() == [False, True, False]

    def test_separation_equal_to_window_is_kept(self):
        vetoed = proximity_vetoed([0.0, 0.25, 0.5], 0.25)
        assert not vetoed.any()

    def test_any_earlier_peak_counts(self):
        vetoed = proximity_vetoed([0.00, 0.05, 0.09], 0.1)
        assert vetoed.tolist() == [False, True, True]

    def test_empty(self):
        assert proximity_vetoed([], 0.1).shape == (0,)


def test_peak_times_in_microseconds():
    times = peak_times([0, 50, 500], start_time=-2.0, sample_rate=500e6)
    np.testing.assert_allclose(times, [-2.0, -1.9, -1.0])
