import threading

import numpy as np
import pytest

from analysis.calibration import CalibrationSlot, CalibrationTable, SpeShape
from shared.models import INTEGRAL_KEYS, IntegralSet


def _filled_slot(channel: int = 3) -> CalibrationSlot:
    slot = CalibrationSlot(channel, low_bin=2, high_bin=3)
    slot.add_shape(np.array([1.0, 2.0, 8.0, 4.0, 2.0, 1.0]))
    slot.add_shape(np.array([3.0, 4.0, 10.0, 6.0, 2.0, 1.0]))
    slot.add_count(2)
    return slot


def test_finalize_divides_by_count():
    slot = _filled_slot()
    before = slot.shape_sum
    slot.finalize()
    assert slot.finalized
    assert slot.count == 2
    np.testing.assert_allclose(slot.shape_sum, before / 2)


def test_finalize_runs_once():
    slot = _filled_slot()
    slot.finalize()
    once = slot.shape_sum
    slot.finalize()
    np.testing.assert_allclose(slot.shape_sum, once)
    assert slot.count == 2


def test_finalize_empty_slot_does_not_divide():
    slot = CalibrationSlot(9, low_bin=4, high_bin=4)
    slot.finalize()
    assert slot.count == 0
    assert np.all(np.isfinite(slot.shape_sum))
    assert not slot.shape_sum.any()


def test_finalized_slot_rejects_updates():
    slot = _filled_slot()
    slot.finalize()
    with pytest.raises(RuntimeError):
        slot.add_amplitude(5.0)
    with pytest.raises(RuntimeError):
        slot.add_count()


def test_shape_window_length_checked():
    slot = CalibrationSlot(1, low_bin=2, high_bin=3)
    with pytest.raises(ValueError):
        slot.add_shape(np.zeros(5))


def test_integrals_skip_missing_values():
    slot = CalibrationSlot(1, low_bin=1, high_bin=1)
    slot.add_integrals(IntegralSet(zeromode=1.0, threshmode=2.0, manualmode=3.0))
    slot.add_integrals(IntegralSet(*range(6)))
    assert slot.integrals("zeromode").tolist() == [1.0, 0.0]
    assert slot.integrals("manualmodeB").tolist() == [5.0]


def test_merge_adds_partial_slot():
    target = _filled_slot()
    target.add_amplitude(10.0)
    partial = _filled_slot()
    partial.add_amplitude(20.0)
    partial.add_integrals(IntegralSet(zeromode=7.0))

    target.merge(partial)

    assert target.count == 4
    np.testing.assert_allclose(target.shape_sum[2], 36.0)
    assert target.amplitudes.tolist() == [10.0, 20.0]
    assert target.integrals("zeromode").tolist() == [7.0]


def test_merge_requires_same_window():
    with pytest.raises(ValueError):
        CalibrationSlot(1, 2, 3).merge(CalibrationSlot(1, 3, 3))


def test_concurrent_updates_are_not_lost():
    slot = CalibrationSlot(1, low_bin=0, high_bin=0)

    def feed():
        for _ in range(500):
            slot.add_shape(np.ones(1))
            slot.add_count()

    threads = [threading.Thread(target=feed) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert slot.count == 2000
    slot.finalize()
    np.testing.assert_allclose(slot.shape_sum, [1.0])


def test_result_exposes_all_artifacts():
    slot = _filled_slot(channel=12)
    for value in (10.0, 55.0, 150.0, 250.0):
        slot.add_amplitude(value)
    slot.add_integrals(IntegralSet(zeromode=120.0, threshmode=90.0))
    slot.finalize()

    result = slot.result()

    assert result.channel == 12
    assert result.n_spes == 2
    assert isinstance(result.shape, SpeShape)
    assert result.shape.offsets.tolist() == [-2, -1, 0, 1, 2, 3]
    assert set(result.integrals) == set(INTEGRAL_KEYS)

    counts, edges = result.amplitude_histogram()
    assert counts.sum() == 3  # 250 lies outside 0..200
    assert edges.size == 51
    counts, edges = result.integral_histogram("zeromode")
    assert counts.sum() == 1
    with pytest.raises(KeyError):
        result.integral_histogram("bogus")


def test_shape_values_length_checked():
    with pytest.raises(ValueError):
        SpeShape(np.zeros(3), count=0, low_bin=2, high_bin=2)


def test_table_indexes_slots_in_channel_order():
    table = CalibrationTable([6, 2, 40], low_bin=1, high_bin=1)
    assert len(table) == 3
    assert [s.channel for s in table] == [6, 2, 40]
    assert table[1].channel == 2

    table.finalize()
    table.finalize()
    assert table.finalized
    assert sorted(table.results()) == [2, 6, 40]
