import numpy as np
import pytest

from core import DetectionResult, Pulse, Waveform
from shared.models import AnalysisOutcome, IntegralSet, INTEGRAL_KEYS, OutcomeStatus


def test_waveform_samples_are_copied_and_readonly():
    samples = np.arange(64, dtype=np.int16)
    wvf = Waveform(channel=17, samples=samples, start_time=-1.5, electronics="daphne")

    assert wvf.n_samples == 64
    assert len(wvf) == 64
    assert not wvf.samples.flags.writeable

    samples[0] = 999  # mutate the source array; waveform should remain unchanged
    assert wvf.samples[0] == 0

    with pytest.raises(ValueError):
        wvf.samples[0] = 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"channel": -1, "samples": np.zeros(4)},
        {"channel": 0, "samples": np.zeros((2, 4))},
        {"channel": 0, "samples": np.zeros(0)},
        {"channel": 0, "samples": np.zeros(4), "sample_rate": 0.0},
    ],
)
def test_waveform_validation(kwargs):
    with pytest.raises(ValueError):
        Waveform(**kwargs)


def test_pulse_width_and_validation():
    assert Pulse(4, 9, 6, 12.0).width == 5
    with pytest.raises(ValueError):
        Pulse(-1, 3, 1, 1.0)
    with pytest.raises(ValueError):
        Pulse(5, 3, 4, 1.0)


def test_detection_result_peaks():
    result = DetectionResult([Pulse(1, 5, 3, 8.0), Pulse(10, 14, 12, 6.0)], threshold=2.0)
    assert isinstance(result.pulses, tuple)
    assert result.peak_indices == (3, 12)
    assert result.ok
    assert not DetectionResult(result.pulses, 2.0, overflow=True).ok


def test_integral_set_items_follow_key_order():
    values = IntegralSet(zeromode=1.0, manualmodeB=6.0)
    assert [k for k, _ in values.items()] == list(INTEGRAL_KEYS)
    assert dict(values.items())["threshmode"] is None


def test_outcome_ok():
    assert AnalysisOutcome(1, OutcomeStatus.SUCCESS, n_spes=3).ok
    assert not AnalysisOutcome(1, OutcomeStatus.FAILED, reason="no SPEs found").ok
