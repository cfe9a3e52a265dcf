"""
Volume envelope for a single track.
Breakpoints live in track-local time; volume between them is linear.
"""
from __future__ import annotations
from bisect import bisect_right
from typing import Iterable, Optional
import numpy as np

from .events import EventEmitter, POINTS_CHANGE, VOLUME_CHANGE
from .track import EnvelopePoint, TrackState

# Reserved breakpoint ids
START_CUE = 'startCue'
FADE_IN_END = 'fadeInEnd'
FADE_OUT_START = 'fadeOutStart'
END_CUE = 'endCue'


def _clamp_volume(volume: float) -> float:
    return min(1.0, max(0.0, float(volume)))


class EnvelopeEngine(EventEmitter):
    """
    Ordered breakpoint set producing a continuous volume curve.

    Emits:
        'points-change' (tuple[EnvelopePoint, ...]) after any change to the set
        'volume-change' (float) when the base volume is set
    """

    def __init__(self, volume: float = 1.0):
        super().__init__()
        self._points: list[EnvelopePoint] = []
        self._volume = _clamp_volume(volume)

    @classmethod
    def for_track(cls, track: TrackState) -> "EnvelopeEngine":
        """Build the envelope of a track, seeding fade and cue breakpoints."""
        envelope = cls(volume=track.volume)
        if isinstance(track.envelope, list):
            envelope.set_points(track.envelope)

        if track.fade_in_end is not None:
            if track.cue_start is not None:
                envelope.add_point(EnvelopePoint(track.cue_start, 0.0, START_CUE))
            envelope.add_point(EnvelopePoint(track.fade_in_end, track.volume, FADE_IN_END))

        if track.fade_out_start is not None:
            envelope.add_point(EnvelopePoint(track.fade_out_start, track.volume, FADE_OUT_START))
            if track.cue_end is not None:
                envelope.add_point(EnvelopePoint(track.cue_end, 0.0, END_CUE))

        return envelope

    # --- Points ---

    @property
    def points(self) -> tuple[EnvelopePoint, ...]:
        return tuple(self._points)

    def get_points(self) -> list[EnvelopePoint]:
        return list(self._points)

    def get_point(self, point_id: str) -> Optional[EnvelopePoint]:
        for point in self._points:
            if point.id == point_id:
                return point
        return None

    def set_points(self, points: Iterable[EnvelopePoint]) -> None:
        """Replace the whole set. For repeated ids the last one wins."""
        by_id: dict[str, int] = {}
        result: list[EnvelopePoint] = []
        for point in points:
            if point.id is not None and point.id in by_id:
                result[by_id[point.id]] = point
                continue
            if point.id is not None:
                by_id[point.id] = len(result)
            result.append(point)

        # sorted() is stable, so points sharing a time keep their order
        self._points = sorted(result, key=lambda p: p.time)
        self.emit(POINTS_CHANGE, self.points)

    def add_point(self, point: EnvelopePoint) -> None:
        if point.id is not None:
            self._points = [p for p in self._points if p.id != point.id]
        index = bisect_right([p.time for p in self._points], point.time)
        self._points.insert(index, point)
        self.emit(POINTS_CHANGE, self.points)

    def set_point_time(self, point_id: str, time: float) -> bool:
        """Move the breakpoint with `point_id` to `time`, keeping its volume."""
        if self.get_point(point_id) is None:
            return False
        self.set_points(
            EnvelopePoint(time, p.volume, p.id) if p.id == point_id else p
            for p in self._points
        )
        return True

    # --- Volume ---

    @property
    def volume(self) -> float:
        """Base volume, used when there are no breakpoints."""
        return self._volume

    def set_volume(self, volume: float) -> None:
        self._volume = _clamp_volume(volume)
        self.emit(VOLUME_CHANGE, self._volume)

    def volume_at(self, time: float) -> float:
        """
        Interpolated volume at local `time`.
        Exact at every breakpoint, linear in between, flat outside the range.
        """
        if not self._points:
            return self._volume
        times = np.fromiter((p.time for p in self._points), dtype=np.float64)
        volumes = np.fromiter((p.volume for p in self._points), dtype=np.float64)
        return float(np.interp(time, times, volumes))
