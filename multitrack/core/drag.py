"""
Drag repositioning of tracks along the master timeline.

`DragRepositioner` validates a normalized delta against the main track and
commits the new offset. `DragGesture` turns pointer positions into such
deltas for hosts that capture raw pointer events.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Callable, Optional
import logging
import time

from .config import DRAG_CONFIG, MultitrackOptions

if TYPE_CHECKING:
    from .arena import TrackArena
    from .clock import ClockEngine

logger = logging.getLogger("Multitrack")


class DragRepositioner:
    __slots__ = ('_arena', '_clock', '_options', '_on_commit')

    def __init__(
        self,
        arena: "TrackArena",
        clock: "ClockEngine",
        options: MultitrackOptions,
        on_commit: Callable[[int, float], None]
    ) -> None:
        self._arena = arena
        self._clock = clock
        self._options = options
        self._on_commit = on_commit

    def bounds(self, index: int) -> tuple[float, float]:
        """Allowed (min_start, max_start) for the track at `index`."""
        track = self._arena[index].track
        main_index = self._arena.main_index()
        if main_index == -1:
            return 0.0 - track.duration, self._clock.max_duration

        main = self._arena[main_index].track
        return main.offset - track.duration, main.offset + main.duration

    def reposition(self, index: int, delta: float) -> bool:
        """
        Move a track by a normalized delta of the timeline length.

        Args:
            index: Track index
            delta: Fraction of the timeline, usually in [-1, 1]

        Returns:
            True if the new offset was committed
        """
        slot = self._arena.get_slot(index)
        if slot is None or not slot.track.draggable:
            return False

        track = slot.track
        proposed = track.offset + delta * self._clock.max_duration

        if self._options.drag_bounds and proposed < 0:
            logger.debug("Drag of %r rejected: %.3fs is before the timeline start", track.id, proposed)
            return False

        min_start, max_start = self.bounds(index)
        if not min_start <= proposed <= max_start:
            logger.debug(
                "Drag of %r rejected: %.3fs outside [%.3f, %.3f]",
                track.id, proposed, min_start, max_start
            )
            return False

        track.offset = proposed
        self._on_commit(index, proposed)
        return True


class DragGesture:
    """
    Pointer state for dragging one track container.

    Positions are in pixels relative to the timeline wrapper; `move()` reports
    deltas as a fraction of the wrapper width.
    """

    def __init__(
        self,
        on_drag: Callable[[float], None],
        right_button_drag: bool = False,
        clock: Callable[[], float] = time.monotonic
    ):
        self.on_drag = on_drag
        self.right_button_drag = right_button_drag
        self._clock = clock
        self._drag_start: Optional[float] = None
        self._is_dragging = False
        self._released_at: Optional[float] = None

    @property
    def active(self) -> bool:
        return self._drag_start is not None

    def press(self, x: float, button: int = 0) -> bool:
        if self.right_button_drag and button != DRAG_CONFIG.right_button:
            return False
        self._drag_start = x
        return True

    def move(self, x: float, width: float) -> Optional[float]:
        """Returns the delta passed to `on_drag`, if any."""
        if self._drag_start is None or width <= 0:
            return None

        diff = x - self._drag_start
        if abs(diff) <= DRAG_CONFIG.move_threshold_px:
            return None

        self._is_dragging = True
        self._drag_start = x
        delta = diff / width
        self.on_drag(delta)
        return delta

    def release(self) -> bool:
        if self._drag_start is None:
            return False
        self._drag_start = None
        if self._is_dragging:
            self._released_at = self._clock()
        return True

    def suppress_click(self) -> bool:
        """True while dragging and shortly after, so a drag does not seek."""
        if not self._is_dragging:
            return False
        if self._drag_start is not None or self._released_at is None:
            return True
        if (self._clock() - self._released_at) * 1000 < DRAG_CONFIG.click_suppress_ms:
            return True
        self._is_dragging = False
        return False
