import enum
import logging
from typing import List, Mapping

import numpy as np

from shared.models import DetectionResult, Pulse
from .base import DetectorParameter, register_detector

logger = logging.getLogger(__name__)


class _State(enum.Enum):
    IDLE = 0
    IN_PULSE = 1


@register_detector
class SpeThresholdDetector:
    """Single-level threshold pulse finder for baseline-referenced PMT signals.

    A pulse opens when a sample rises above the threshold and closes on the
    first sample that falls below it. Start and end share one level.
    """

    name = "spe_threshold"
    display_name = "SPE Threshold"

    def __init__(self):
        self._region_start: int = 0
        self._max_pulses: int = 200
        self._min_width: int = 2
        self._scans: int = 0
        self._overflows: int = 0

        self._params = {
            "spe_region_start": DetectorParameter(
                name="spe_region_start",
                default=0,
                min=0,
                help="Number of samples skipped before the pulse search starts",
            ),
            "max_pulses": DetectorParameter(
                name="max_pulses",
                default=200,
                min=1,
                help="Pulse count at which the waveform is rejected",
            ),
            "min_width": DetectorParameter(
                name="min_width",
                default=2,
                min=0,
                help="Pulses must be wider than this many samples",
            ),
        }

    @property
    def parameters(self) -> Mapping[str, DetectorParameter]:
        return dict(self._params)

    @property
    def overflows(self) -> int:
        return self._overflows

    @property
    def scans(self) -> int:
        return self._scans

    def configure(self, **params) -> None:
        unknown = set(params) - set(self._params)
        if unknown:
            raise TypeError(f"Unknown detector parameters: {sorted(unknown)}")
        if "spe_region_start" in params:
            value = int(params["spe_region_start"])
            if value < 0:
                raise ValueError("spe_region_start must be non-negative")
            self._region_start = value
        if "max_pulses" in params:
            value = int(params["max_pulses"])
            if value <= 0:
                raise ValueError("max_pulses must be positive")
            self._max_pulses = value
        if "min_width" in params:
            value = int(params["min_width"])
            if value < 0:
                raise ValueError("min_width must be non-negative")
            self._min_width = value

    def reset(self) -> None:
        self._scans = 0
        self._overflows = 0

    def detect(self, signal: np.ndarray, threshold: float) -> DetectionResult:
        data = np.asarray(signal, dtype=np.float64)
        n = data.shape[0]
        self._scans += 1

        pulses: List[Pulse] = []
        state = _State.IDLE
        start = 0
        peak_index = 0
        peak_value = 0.0

        for i in range(self._region_start, n):
            value = float(data[i])
            if state is _State.IDLE:
                if value > threshold:
                    state = _State.IN_PULSE
                    start = max(i - 1, 0)
                    peak_index = i
                    peak_value = value
            elif value < threshold:
                state = _State.IDLE
                end = i
                if end - start > self._min_width:
                    pulses.append(Pulse(start, end, peak_index, peak_value))
                    if len(pulses) >= self._max_pulses:
                        self._overflows += 1
                        logger.warning(
                            "Pulse search stopped at sample %d: %d pulses above threshold %.3f",
                            i, len(pulses), threshold,
                        )
                        return DetectionResult(tuple(pulses), threshold, overflow=True)
            elif value > peak_value:
                peak_index = i
                peak_value = value

        # a pulse still open at the end of the readout window is dropped
        return DetectionResult(tuple(pulses), threshold)
