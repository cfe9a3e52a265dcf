"""
Transport controller: play/pause/seek entry points and the per-track
reconciliation pass run on every clock update.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Optional
import logging

from .config import SYNC_CONFIG, PlaybackState

if TYPE_CHECKING:
    from .arena import TrackArena, TrackSlot
    from .clock import ClockEngine
    from .types import OutputContext

logger = logging.getLogger("Multitrack")


class TransportController:
    """
    Decides which sources play at any master position.
    """
    __slots__ = ('_arena', '_clock', '_output', '_drift_tolerance')

    def __init__(
        self,
        arena: "TrackArena",
        clock: "ClockEngine",
        output_context: Optional["OutputContext"] = None,
        drift_tolerance: float = SYNC_CONFIG.drift_tolerance
    ) -> None:
        self._arena = arena
        self._clock = clock
        self._output = output_context
        self._drift_tolerance = drift_tolerance

    @property
    def state(self) -> PlaybackState:
        if self.is_playing():
            return PlaybackState.PLAYING
        return PlaybackState.PAUSED if self._clock.current_time > 0 else PlaybackState.STOPPED

    def is_playing(self) -> bool:
        """True if any source is playing."""
        return any(
            slot.source is not None and not slot.source.paused
            for slot in self._arena
        )

    def find_current_tracks(self) -> list[int]:
        """
        Indexes of loaded tracks whose window contains the current time.
        Falls back to the earliest-starting loaded track when the position
        sits in a gap.
        """
        time = self._clock.current_time
        playable = [i for i, slot in enumerate(self._arena) if slot.is_playable]
        indexes = [i for i in playable if self._arena[i].track.contains(time)]

        if not indexes and playable:
            min_offset = min(self._arena[i].track.offset for i in playable)
            indexes.append(next(i for i in playable if self._arena[i].track.offset == min_offset))

        return indexes

    def play(self) -> None:
        if self._output is not None and self._output.suspended:
            self._output.resume()

        self._clock.start_loop()

        indexes = self.find_current_tracks()
        for index in indexes:
            self._arena[index].source.play()
        logger.info("Playback started at %.3fs (tracks %s)", self._clock.current_time, indexes)

    def pause(self) -> None:
        for slot in self._arena:
            if slot.source is not None:
                slot.source.pause()
        logger.info("Playback paused at %.3fs", self._clock.current_time)

    def seek_to(self, fraction: float) -> None:
        """
        Move to a fraction (0..1) of the timeline.

        Args:
            fraction: Position on the timeline, clamped to [0, 1]
        """
        fraction = min(1.0, max(0.0, fraction))
        self.set_time(fraction * self._clock.max_duration)

    def set_time(self, seconds: float) -> None:
        """Move to an absolute master time, resuming playback if it was on."""
        seconds = max(0.0, seconds)
        if self._clock.max_duration > 0:
            seconds = min(seconds, self._clock.max_duration)

        was_playing = self.is_playing()
        self._clock.update_position(seconds)
        if was_playing:
            self.play()

    # --- Reconciliation ---

    def reconcile(self, master_time: float) -> None:
        """Bring every loaded source in line with `master_time`."""
        is_paused = not self.is_playing()

        for slot in self._arena:
            if not slot.is_playable:
                continue
            try:
                self._reconcile_slot(slot, master_time, is_paused)
            except Exception as e:
                logger.error("Failed to sync track %r: %s", slot.track.id, e, exc_info=True)

    def _reconcile_slot(self, slot: "TrackSlot", master_time: float, is_paused: bool) -> None:
        track, source = slot.track, slot.source
        local_time = track.local_time(master_time)

        # Drift correction
        if abs(source.current_time - local_time) > self._drift_tolerance:
            logger.debug("Seeking track %r to %.3fs", track.id, local_time)
            source.current_time = local_time

        # Range gating
        if is_paused or local_time < 0 or local_time > track.duration:
            if not source.paused:
                source.pause()
        elif source.paused:
            source.play()

        # Cue muting
        muted = track.is_muted_at(local_time)
        if muted != source.muted:
            source.muted = muted

        if slot.envelope is not None:
            volume = slot.envelope.volume_at(local_time)
            if volume != source.volume:
                source.volume = volume
