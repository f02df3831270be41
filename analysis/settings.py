from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeAnalysisSettings:
    """Parameters of one SPE calibration run."""

    # channel selection
    opdets_to_plot: Tuple[str, ...] = ("pmt_coated", "pmt_uncoated")
    use_all_pmts: bool = True
    selected_pmts: Tuple[int, ...] = ()
    # event selection
    all_events: bool = True
    event_id: int = 0
    # shape window around the peak
    low_bin: int = 20
    high_bin: int = 60
    # pulse detection
    detector: str = "spe_threshold"
    n_stdev: float = 3.0
    spe_region_start: int = 0
    max_pulses: int = 200
    # noise windows
    nbmin_factor: float = 0.0
    nbmax_factor: float = 0.8
    n2bmin_factor: float = 0.9
    # integration
    manual_bound_lo: int = 5
    manual_bound_hi: int = 15
    zero_threshold: float = 10.0
    local_baseline_offset: int = 50
    max_search_steps: int = 50
    # proximity veto on the average shape
    cut: bool = False
    proximity_window_us: float = 0.1
    # which features to extract
    do_avgspe: bool = True
    do_amp: bool = True
    do_integ: bool = True
    # sample rates (Hz)
    sampling_hz: float = 500e6
    daphne_sampling_hz: float = 62.5e6
    # histogram layouts (bins, low, high)
    amp_hist: Tuple[int, float, float] = (50, 0.0, 200.0)
    integ_hist: Tuple[int, float, float] = (50, 0.0, 500.0)

    def __post_init__(self) -> None:
        for name in ("opdets_to_plot", "selected_pmts", "amp_hist", "integ_hist"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def n_shape_bins(self) -> int:
        return self.low_bin + self.high_bin + 1

    def sample_rate_for(self, electronics: str) -> float:
        if electronics == "daphne":
            return self.daphne_sampling_hz
        return self.sampling_hz

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        return data

    def validate(self) -> None:
        for name in ("sampling_hz", "daphne_sampling_hz"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0):
                raise ValueError(f"{name} must be positive and finite")
        if self.low_bin < 0 or self.high_bin < 0:
            raise ValueError("low_bin and high_bin must be non-negative")
        if not (math.isfinite(self.n_stdev) and self.n_stdev > 0):
            raise ValueError("n_stdev must be positive")
        if self.spe_region_start < 0:
            raise ValueError("spe_region_start must be non-negative")
        if self.max_pulses <= 0:
            raise ValueError("max_pulses must be positive")
        for name in ("nbmin_factor", "nbmax_factor", "n2bmin_factor"):
            value = getattr(self, name)
            if not (math.isfinite(value) and 0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be within [0, 1]")
        if self.nbmin_factor > self.nbmax_factor:
            raise ValueError("nbmin_factor must not exceed nbmax_factor")
        if self.n2bmin_factor >= 1.0:
            raise ValueError("n2bmin_factor must be below 1 so the post-peak window is not empty")
        if self.manual_bound_lo < 0 or self.manual_bound_hi < 0:
            raise ValueError("manual bounds must be non-negative")
        if self.local_baseline_offset <= 0:
            raise ValueError("local_baseline_offset must be positive")
        if self.max_search_steps <= 0:
            raise ValueError("max_search_steps must be positive")
        if not (math.isfinite(self.proximity_window_us) and self.proximity_window_us >= 0):
            raise ValueError("proximity_window_us must be non-negative")
        if not self.opdets_to_plot:
            raise ValueError("opdets_to_plot must not be empty")
        if any(s < 0 for s in self.selected_pmts):
            raise ValueError("selected_pmts must be non-negative")
        if not self.use_all_pmts and not self.selected_pmts:
            raise ValueError("selected_pmts is required when use_all_pmts is false")
        for name in ("amp_hist", "integ_hist"):
            layout = getattr(self, name)
            if len(layout) != 3:
                raise ValueError(f"{name} must be (bins, low, high)")
            bins, low, high = layout
            if int(bins) <= 0 or not high > low:
                raise ValueError(f"{name} needs positive bins and high > low")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SpeAnalysisSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown analysis settings: {', '.join(unknown)}")
        settings = cls(**dict(data))
        settings.validate()
        return settings


def load_settings(path: str | Path) -> SpeAnalysisSettings:
    """Read analysis settings from a JSON object file."""
    path = Path(path)
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"{path}: settings file must hold a JSON object")
    settings = SpeAnalysisSettings.from_mapping(data)
    logger.debug("Loaded analysis settings from %s", path)
    return settings


__all__ = ["SpeAnalysisSettings", "load_settings"]
