from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

ARAPUCA_TYPES: Tuple[str, ...] = ("xarapuca_vuv", "xarapuca_vis")


@dataclass(frozen=True)
class OpDetChannel:
    """Static description of one optical detector channel."""

    id: int
    pd_type: str
    electronics: str = ""

    def __post_init__(self) -> None:
        if self.id < 0:
            raise ValueError("id must be non-negative")
        if not isinstance(self.pd_type, str) or not self.pd_type:
            raise ValueError("pd_type must be a non-empty string")

    @property
    def is_arapuca(self) -> bool:
        return self.pd_type in ARAPUCA_TYPES


class ChannelMap:
    """Resolves raw channel numbers to detector metadata and calibration slots.

    `tracked` lists the channels that own a calibration slot, in slot order:
    the slot index of a channel is its position in that sequence.
    """

    def __init__(self, channels: Iterable[OpDetChannel], tracked: Sequence[int]) -> None:
        self._channels: Dict[int, OpDetChannel] = {}
        for ch in channels:
            if ch.id in self._channels:
                raise ValueError(f"duplicate channel id {ch.id}")
            self._channels[ch.id] = ch
        self._tracked: Tuple[int, ...] = tuple(int(c) for c in tracked)
        self._slot_of: Dict[int, int] = {}
        for idx, ch_id in enumerate(self._tracked):
            if ch_id not in self._channels:
                raise ValueError(f"tracked channel {ch_id} is not described")
            if ch_id in self._slot_of:
                raise ValueError(f"channel {ch_id} tracked twice")
            self._slot_of[ch_id] = idx

    @classmethod
    def build(
        cls,
        channels: Iterable[OpDetChannel],
        *,
        use_all: bool = True,
        selected: Sequence[int] = (),
    ) -> "ChannelMap":
        """Track every PMT channel, or only the selected ones.

        `selected` holds PMT ordinals: the position of a channel among the
        non-ARAPUCA channels sorted by id. ARAPUCA channels are never tracked.
        """
        described = sorted(channels, key=lambda c: c.id)
        wanted = set(int(s) for s in selected)
        tracked: List[int] = []
        pmt_ordinal = 0
        for ch in described:
            if ch.is_arapuca:
                continue
            if use_all or pmt_ordinal in wanted:
                tracked.append(ch.id)
            pmt_ordinal += 1
        if not use_all:
            missing = sorted(w for w in wanted if w >= pmt_ordinal)
            if missing:
                logger.warning("Selected PMT ordinals out of range: %s", missing)
        return cls(described, tracked)

    @classmethod
    def from_types(
        cls,
        pd_types: Mapping[int, str],
        electronics: Optional[Mapping[int, str]] = None,
        **kwargs,
    ) -> "ChannelMap":
        electronics = electronics or {}
        channels = [
            OpDetChannel(id=int(ch), pd_type=pd_type, electronics=electronics.get(ch, ""))
            for ch, pd_type in pd_types.items()
        ]
        return cls.build(channels, **kwargs)

    @property
    def tracked_channels(self) -> Tuple[int, ...]:
        return self._tracked

    @property
    def n_slots(self) -> int:
        return len(self._tracked)

    def slot_index(self, channel: int) -> Optional[int]:
        """Calibration-slot index of `channel`, or None when it is not tracked."""
        return self._slot_of.get(channel)

    def pd_type(self, channel: int) -> Optional[str]:
        ch = self._channels.get(channel)
        return None if ch is None else ch.pd_type

    def electronics(self, channel: int) -> str:
        ch = self._channels.get(channel)
        return "" if ch is None else ch.electronics

    def __contains__(self, channel: object) -> bool:
        return channel in self._slot_of

    def __len__(self) -> int:
        return len(self._tracked)


__all__ = ["ARAPUCA_TYPES", "OpDetChannel", "ChannelMap"]
