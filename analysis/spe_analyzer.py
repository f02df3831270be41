from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from core.detection import create_detector, peak_times
from core.noise import baseline_subtract, estimate_noise
from shared.channel_map import ChannelMap
from shared.models import AnalysisOutcome, OutcomeStatus, Waveform

from .calibration import CalibrationTable, ChannelResult
from .extractors import AmplitudeExtractor, IntegralExtractor, ShapeAccumulator
from .settings import SpeAnalysisSettings

logger = logging.getLogger(__name__)

REASON_UNTRACKED = "untracked channel"
REASON_OPDET_TYPE = "detector type not selected"
REASON_NO_SPES = "no SPEs found"
REASON_PULSE_LIMIT = "pulse limit reached"


@dataclass
class AnalyzerStats:
    events: int = 0
    skipped_events: int = 0
    waveforms: int = 0
    skipped: int = 0
    success: int = 0
    failed: int = 0
    total_spes: int = 0
    reasons: Counter = field(default_factory=Counter)

    def snapshot(self) -> Dict[str, object]:
        return {
            "events": self.events,
            "skipped_events": self.skipped_events,
            "waveforms": self.waveforms,
            "skipped": self.skipped,
            "success": self.success,
            "failed": self.failed,
            "total_spes": self.total_spes,
            "reasons": dict(self.reasons),
        }


class SpeAnalyzer:
    """Run context of one SPE calibration.

    Owns the calibration slots of every tracked channel. Waveforms are fed
    through `process_event` / `process_waveform`; `finalize` normalizes the
    average shapes once and returns the per-channel results. Data-dependent
    problems never raise: they are reported as outcomes and counted in
    `stats`.
    """

    def __init__(self, settings: SpeAnalysisSettings, channel_map: ChannelMap) -> None:
        settings.validate()
        self._settings = settings
        self._channel_map = channel_map
        self._table = CalibrationTable(channel_map.tracked_channels, settings.low_bin, settings.high_bin)
        self._detector = create_detector(
            settings.detector,
            spe_region_start=settings.spe_region_start,
            max_pulses=settings.max_pulses,
        )
        self._detector.reset()
        self._shape = ShapeAccumulator(
            settings.low_bin,
            settings.high_bin,
            proximity_veto=settings.cut,
            proximity_window=settings.proximity_window_us,
        )
        self._amplitude = AmplitudeExtractor(settings.low_bin, settings.high_bin)
        self._integral = IntegralExtractor(
            settings.low_bin,
            settings.high_bin,
            manual_bound_lo=settings.manual_bound_lo,
            manual_bound_hi=settings.manual_bound_hi,
            zero_threshold=settings.zero_threshold,
            local_baseline_offset=settings.local_baseline_offset,
            max_search_steps=settings.max_search_steps,
        )
        self._stats = AnalyzerStats()
        self._results: Optional[Dict[int, ChannelResult]] = None
        logger.info(
            "SPE analysis configured for %d channels (detector=%s, n_stdev=%s)",
            len(self._table), settings.detector, settings.n_stdev,
        )

    @classmethod
    def from_types(
        cls,
        settings: SpeAnalysisSettings,
        pd_types: Mapping[int, str],
        electronics: Optional[Mapping[int, str]] = None,
    ) -> "SpeAnalyzer":
        """Build the channel map from detector types, tracking the PMTs the settings select."""
        channel_map = ChannelMap.from_types(
            pd_types,
            electronics,
            use_all=settings.use_all_pmts,
            selected=settings.selected_pmts,
        )
        return cls(settings, channel_map)

    @property
    def settings(self) -> SpeAnalysisSettings:
        return self._settings

    @property
    def stats(self) -> AnalyzerStats:
        return self._stats

    @property
    def table(self) -> CalibrationTable:
        return self._table

    @property
    def finalized(self) -> bool:
        return self._results is not None

    def process_event(self, event_id: int, waveforms: Iterable[Waveform]) -> List[AnalysisOutcome]:
        s = self._settings
        if not s.all_events and event_id != s.event_id:
            self._stats.skipped_events += 1
            return []
        self._stats.events += 1
        outcomes = [self.process_waveform(wvf) for wvf in waveforms]
        n_spes = sum(o.n_spes for o in outcomes)
        n_ok = sum(1 for o in outcomes if o.ok)
        n_failed = sum(1 for o in outcomes if o.status is OutcomeStatus.FAILED)
        logger.debug(
            "Event %s: SPEs analyzed from %d waveforms, analysis failed on %d, %d SPEs found",
            event_id, n_ok, n_failed, n_spes,
        )
        return outcomes

    def process_waveform(self, waveform: Waveform) -> AnalysisOutcome:
        if self._results is not None:
            raise RuntimeError("analysis run is already finalized")
        s = self._settings
        ch = waveform.channel
        self._stats.waveforms += 1

        slot_index = self._channel_map.slot_index(ch)
        if slot_index is None:
            return self._skip(ch, REASON_UNTRACKED)
        if self._channel_map.pd_type(ch) not in s.opdets_to_plot:
            return self._skip(ch, REASON_OPDET_TYPE)
        slot = self._table[slot_index]

        electronics = waveform.electronics or self._channel_map.electronics(ch)
        sample_rate = waveform.sample_rate or s.sample_rate_for(electronics)

        noise = estimate_noise(
            waveform.samples,
            nbmin_factor=s.nbmin_factor,
            nbmax_factor=s.nbmax_factor,
            n2bmin_factor=s.n2bmin_factor,
        )
        signal = baseline_subtract(waveform.samples, noise)
        threshold = noise.threshold(s.n_stdev)
        detection = self._detector.detect(signal, threshold)

        if detection.overflow:
            return self._fail(ch, REASON_PULSE_LIMIT)
        peaks = detection.peak_indices
        if not peaks:
            return self._fail(ch, REASON_NO_SPES)

        if s.do_avgspe:
            times = peak_times(peaks, waveform.start_time, sample_rate)
            self._shape.accumulate(slot, signal, peaks, times)
        if s.do_amp:
            self._amplitude.extract(slot, signal, peaks, count=not s.do_avgspe)
        if s.do_integ:
            self._integral.extract(
                slot, signal, peaks, threshold,
                count=not (s.do_avgspe or s.do_amp),
            )

        self._stats.success += 1
        self._stats.total_spes += len(peaks)
        logger.debug(
            "Channel %d: %d SPEs found (baseline %.2f, stdev %.3f)",
            ch, len(peaks), noise.mean, noise.stdev,
        )
        return AnalysisOutcome(ch, OutcomeStatus.SUCCESS, n_spes=len(peaks))

    def _skip(self, channel: int, reason: str) -> AnalysisOutcome:
        self._stats.skipped += 1
        return AnalysisOutcome(channel, OutcomeStatus.SKIPPED, reason=reason)

    def _fail(self, channel: int, reason: str) -> AnalysisOutcome:
        self._stats.failed += 1
        self._stats.reasons[reason] += 1
        logger.debug("Analysis failure on channel %d: %s", channel, reason)
        return AnalysisOutcome(channel, OutcomeStatus.FAILED, reason=reason)

    def finalize(self) -> Dict[int, ChannelResult]:
        if self._results is None:
            self._table.finalize()
            self._results = self._table.results(
                amp_hist=self._settings.amp_hist,
                integ_hist=self._settings.integ_hist,
            )
            logger.info(
                "Analyses complete: SPEs analyzed from %d waveforms, analysis failed on %d "
                "(%d at the pulse limit). Total SPEs found: %d",
                self._stats.success, self._stats.failed,
                getattr(self._detector, "overflows", 0), self._stats.total_spes,
            )
        return self._results


__all__ = ["AnalyzerStats", "SpeAnalyzer"]
