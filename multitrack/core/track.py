from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from .types import AudioSource, TrackId


class LoadState(Enum):
    EMPTY = auto()    # no url and no media: a drop placeholder
    LOADING = auto()
    LOADED = auto()
    FAILED = auto()


@dataclass(frozen=True, slots=True)
class EnvelopePoint:
    """A single volume breakpoint in track-local time."""
    time: float
    volume: float
    id: Optional[str] = None


@dataclass(slots=True)
class Marker:
    time: float
    label: str = ""
    color: Optional[str] = None


@dataclass(slots=True)
class Intro:
    end_time: float
    label: str = ""
    color: Optional[str] = None


@dataclass
class TrackState:
    """
    Configuration and runtime fields of a single track.
    Times other than `offset` are in the track's own local time.
    """
    id: "TrackId"
    url: Optional[str] = None
    offset: float = 0.0
    duration: float = 0.0
    cue_start: Optional[float] = None
    cue_end: Optional[float] = None
    fade_in_end: Optional[float] = None
    fade_out_start: Optional[float] = None
    volume: float = 1.0
    draggable: bool = False
    envelope: Union[bool, list[EnvelopePoint]] = False
    markers: list[Marker] = field(default_factory=list)
    intro: Optional[Intro] = None
    media: Optional["AudioSource"] = field(default=None, repr=False, compare=False)
    load_state: LoadState = field(default=LoadState.EMPTY, compare=False)

    def __post_init__(self) -> None:
        self.offset = self.offset or 0.0
        self.volume = min(1.0, max(0.0, self.volume))
        # cue_start <= cue_end
        if self.cue_start is not None and self.cue_end is not None and self.cue_end < self.cue_start:
            self.cue_end = self.cue_start

    @property
    def has_source(self) -> bool:
        return self.url is not None or self.media is not None

    @property
    def is_loaded(self) -> bool:
        return self.load_state == LoadState.LOADED

    @property
    def has_envelope(self) -> bool:
        return self.envelope is True or isinstance(self.envelope, list)

    @property
    def end(self) -> float:
        """End of the track on the master timeline."""
        return self.offset + self.duration

    def local_time(self, master_time: float) -> float:
        return master_time - self.offset

    def contains(self, master_time: float) -> bool:
        """Whether `master_time` falls in [offset, offset + duration)."""
        return self.offset <= master_time < self.end

    def is_muted_at(self, local_time: float) -> bool:
        """Muted outside the cue window. Missing cues default to 0 and +inf."""
        start = self.cue_start if self.cue_start is not None else 0.0
        end = self.cue_end if self.cue_end is not None else float("inf")
        return local_time < start or local_time > end

    def __repr__(self) -> str:
        return (
            f"TrackState(id={self.id!r}, offset={self.offset:.2f}s, "
            f"duration={self.duration:.2f}s, {self.load_state.name.lower()})"
        )
