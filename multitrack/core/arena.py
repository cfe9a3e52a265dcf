"""
Slot arena: the engine-owned collection of tracks and their collaborators,
addressed by index. Other components receive the arena and read or mutate
slots through it instead of keeping their own references.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

from .events import SubscriptionList
from .track import TrackState

if TYPE_CHECKING:
    from .envelope import EnvelopeEngine
    from .regions import CueRegions
    from .types import AudioSource, TrackId


@dataclass
class TrackSlot:
    track: TrackState
    source: Optional["AudioSource"] = None
    envelope: Optional["EnvelopeEngine"] = None
    regions: Optional["CueRegions"] = None
    subscriptions: SubscriptionList = field(default_factory=SubscriptionList)

    @property
    def is_playable(self) -> bool:
        """Has a source that finished loading."""
        return self.source is not None and self.track.is_loaded

    def release(self) -> None:
        """Dispose listeners and the source. Safe to call more than once."""
        self.subscriptions.dispose()
        if self.envelope is not None:
            self.envelope.remove_all_listeners()
            self.envelope = None
        self.regions = None
        if self.source is not None:
            self.source.release()
            self.source = None


class TrackArena:
    """Ordered, id-unique collection of track slots."""

    def __init__(self, tracks: Sequence[TrackState] = ()):
        ids = [t.id for t in tracks]
        duplicates = {i for i in ids if ids.count(i) > 1}
        if duplicates:
            raise ValueError(f"Duplicate track ids: {sorted(map(str, duplicates))}")
        self._slots = [TrackSlot(track) for track in tracks]

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[TrackSlot]:
        return iter(self._slots)

    def __getitem__(self, index: int) -> TrackSlot:
        return self._slots[index]

    def get_slot(self, index: int) -> Optional[TrackSlot]:
        """Get slot by index safely."""
        if 0 <= index < len(self._slots):
            return self._slots[index]
        return None

    def replace(self, index: int, track: TrackState) -> TrackSlot:
        """Put a fresh slot for `track` at `index`. The caller releases the old one."""
        self._slots[index] = TrackSlot(track)
        return self._slots[index]

    def index_of(self, track_id: "TrackId") -> int:
        for index, slot in enumerate(self._slots):
            if slot.track.id == track_id:
                return index
        return -1

    def get_track(self, track_id: "TrackId") -> Optional[TrackState]:
        index = self.index_of(track_id)
        return self._slots[index].track if index != -1 else None

    @property
    def tracks(self) -> list[TrackState]:
        return [slot.track for slot in self._slots]

    @property
    def durations(self) -> list[float]:
        return [slot.track.duration for slot in self._slots]

    @property
    def max_duration(self) -> float:
        """Furthest track end on the master timeline."""
        return max((slot.track.end for slot in self._slots), default=0.0)

    def main_index(self) -> int:
        """First track with a source that is not draggable, or -1."""
        for index, slot in enumerate(self._slots):
            if slot.track.has_source and not slot.track.draggable:
                return index
        return -1
