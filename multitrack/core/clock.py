"""
Master clock of the multitrack engine.

The clock follows the furthest-advanced playing source. It never runs
backward on its own; only an explicit seek moves it back.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Callable, Optional
import logging

if TYPE_CHECKING:
    from .arena import TrackArena
    from .types import Renderer, Scheduler, TimerHandle

logger = logging.getLogger("Multitrack")


class ClockEngine:
    """
    Owns `current_time` and `max_duration` and runs the sampling loop.

    Every position update is forwarded to `reconcile(master_time)`, which
    brings each source in line with the new position.
    """
    __slots__ = (
        '_arena', '_renderer', '_scheduler', '_reconcile',
        '_current_time', '_max_duration', '_handle', '_destroyed'
    )

    def __init__(
        self,
        arena: "TrackArena",
        renderer: "Renderer",
        scheduler: "Scheduler",
        reconcile: Callable[[float], None]
    ) -> None:
        self._arena = arena
        self._renderer = renderer
        self._scheduler = scheduler
        self._reconcile = reconcile
        self._current_time: float = 0.0
        self._max_duration: float = 0.0
        self._handle: Optional["TimerHandle"] = None
        self._destroyed: bool = False

    @property
    def current_time(self) -> float:
        """Master position in seconds."""
        return self._current_time

    @property
    def max_duration(self) -> float:
        return self._max_duration

    @property
    def running(self) -> bool:
        """Whether a tick is pending."""
        return self._handle is not None

    def refresh_max_duration(self) -> float:
        """Recompute the timeline length from the tracks."""
        self._max_duration = self._arena.max_duration
        return self._max_duration

    def normalized(self, time: float) -> float:
        if self._max_duration <= 0:
            return 0.0
        return time / self._max_duration

    def update_position(self, time: float, auto_center: bool = False) -> None:
        """Set the master position and reconcile every track against it."""
        if time != self._current_time:
            self._current_time = time
            self._renderer.update_cursor(self.normalized(time), auto_center)

        self._reconcile(time)

    def sample(self) -> Optional[float]:
        """
        Furthest position reported by a playing source, never below the
        current time. None when no source is playing.
        """
        position: Optional[float] = None
        for slot in self._arena:
            if not slot.is_playable or slot.source.paused:
                continue
            candidate = slot.source.current_time + slot.track.offset
            position = candidate if position is None else max(position, candidate)

        if position is None:
            return None
        return max(self._current_time, position)

    # --- Sampling loop ---

    def start_loop(self) -> None:
        if self._destroyed or self._handle is not None:
            return
        self._handle = self._scheduler.schedule(self._tick)
        logger.debug("Sync loop started")

    def stop_loop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Sync loop stopped")

    def _tick(self) -> None:
        self._handle = None
        if self._destroyed:
            return

        position = self.sample()
        if position is None:
            logger.debug("No source playing, sync loop idle")
            return

        if position > self._current_time:
            self.update_position(position, auto_center=True)

        # update_position may have destroyed the engine or restarted the loop
        if not self._destroyed and self._handle is None:
            self._handle = self._scheduler.schedule(self._tick)

    def destroy(self) -> None:
        self.stop_loop()
        self._destroyed = True
