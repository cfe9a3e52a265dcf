from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .track import TrackState


@dataclass(slots=True)
class Region:
    """A span (or a point, when start == end) in track-local time."""
    start: float
    end: float
    content: str = ""
    color: Optional[str] = None
    resizable: bool = True


class CueRegions:
    """
    Region state of one loaded track: the two cue shades, the intro and the
    markers. Holds copies of the track's values; the engine owns the track.
    """
    __slots__ = ('duration', 'start_cue', 'end_cue', 'intro', 'markers')

    def __init__(self, track: TrackState):
        self.duration = track.duration
        self.start_cue: Optional[Region] = None
        self.end_cue: Optional[Region] = None
        self.intro: Optional[Region] = None

        # Start and end cues, shading everything outside the playable window
        if track.cue_start is not None or track.cue_end is not None:
            start = track.cue_start if track.cue_start is not None else 0.0
            end = track.cue_end if track.cue_end is not None else self.duration
            self.start_cue = Region(0.0, start)
            self.end_cue = Region(end, self.duration)

        if track.intro is not None:
            self.intro = Region(0.0, track.intro.end_time, track.intro.label, track.intro.color)

        self.markers = [
            Region(m.time, m.time, m.label, m.color, resizable=False)
            for m in track.markers
        ]

    @property
    def has_cues(self) -> bool:
        return self.start_cue is not None

    def _clamp(self, time: float, low: float, high: float) -> float:
        return min(max(time, low), high)

    def resize_start_cue(self, time: float) -> Optional[float]:
        """Move the right edge of the start shade. Returns the applied time."""
        if self.start_cue is None or self.end_cue is None:
            return None
        self.start_cue.end = self._clamp(time, 0.0, self.end_cue.start)
        return self.start_cue.end

    def resize_end_cue(self, time: float) -> Optional[float]:
        """Move the left edge of the end shade. Returns the applied time."""
        if self.start_cue is None or self.end_cue is None:
            return None
        self.end_cue.start = self._clamp(time, self.start_cue.end, self.duration)
        return self.end_cue.start

    def resize_intro(self, time: float) -> Optional[float]:
        if self.intro is None:
            return None
        self.intro.end = self._clamp(time, 0.0, self.duration)
        return self.intro.end
