"""
Multitrack engine: plays N tracks as one timeline.

Composes the clock, transport, drag and envelope components around an arena
of track slots, loads the sources and emits the domain events.
"""
from __future__ import annotations
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Sequence
import logging

from .arena import TrackArena, TrackSlot
from .clock import ClockEngine
from .config import MultitrackOptions, PlaybackState
from .drag import DragGesture, DragRepositioner
from .envelope import END_CUE, FADE_IN_END, FADE_OUT_START, START_CUE, EnvelopeEngine
from .events import (
    CANPLAY, DROP, END_CUE_CHANGE, ENVELOPE_POINTS_CHANGE, FADE_IN_CHANGE,
    FADE_OUT_CHANGE, INTRO_END_CHANGE, POINTS_CHANGE, START_CUE_CHANGE,
    START_POSITION_CHANGE, VOLUME_CHANGE,
    Drop, EndCueChange, EnvelopePointsChange, EventEmitter, FadeInChange,
    FadeOutChange, IntroEndChange, StartCueChange, StartPositionChange, VolumeChange,
)
from .regions import CueRegions
from .sources import FileAudioSource
from .track import EnvelopePoint, LoadState, TrackState
from .transport import TransportController
from .types import NullRenderer

if TYPE_CHECKING:
    from .types import AudioSource, OutputContext, Renderer, Scheduler, TrackId

logger = logging.getLogger("Multitrack")


class MultitrackEngine(EventEmitter):
    """
    Synchronized multitrack player.

    Emits 'canplay' once every source has loaded or failed, and again after
    each track replacement. See `multitrack.core.events` for the other events.
    """

    def __init__(
        self,
        tracks: Sequence[TrackState],
        options: Optional[MultitrackOptions] = None,
        *,
        renderer: Optional["Renderer"] = None,
        scheduler: Optional["Scheduler"] = None,
        source_factory: Optional[Callable[[], "AudioSource"]] = None,
        output_context: Optional["OutputContext"] = None
    ):
        super().__init__()
        if scheduler is None:
            from ..ui.qt_bridge import QtScheduler
            scheduler = QtScheduler()

        self.options = options or MultitrackOptions()
        self._renderer = renderer or NullRenderer()
        self._source_factory = source_factory or FileAudioSource
        self._arena = TrackArena([self._copy_track(t) for t in tracks])
        self._clock = ClockEngine(self._arena, self._renderer, scheduler, self._reconcile)
        self._transport = TransportController(self._arena, self._clock, output_context)
        self._drag = DragRepositioner(self._arena, self._clock, self.options, self._on_drag_commit)

        self._pending: set[int] = set()
        self._reloading: set[int] = set()
        self._initialized = False
        self._ready = False
        self._destroyed = False

        self._renderer.add_drop_handler(self._on_drop)

        for index in range(len(self._arena)):
            self._init_source(index)

        self._initialized = True
        self._check_ready()
        logger.info("MultitrackEngine initialized with %d tracks", len(self._arena))

    @classmethod
    def create(cls, tracks: Sequence[TrackState], options: Optional[MultitrackOptions] = None, **kwargs: Any) -> "MultitrackEngine":
        return cls(tracks, options, **kwargs)

    @staticmethod
    def _copy_track(track: TrackState) -> TrackState:
        intro = replace(track.intro) if track.intro is not None else None
        return replace(track, markers=list(track.markers), intro=intro, load_state=LoadState.EMPTY)

    # --- State ---

    @property
    def ready(self) -> bool:
        """True once 'canplay' has been emitted."""
        return self._ready

    @property
    def tracks(self) -> list[TrackState]:
        return self._arena.tracks

    @property
    def durations(self) -> list[float]:
        return self._arena.durations

    @property
    def max_duration(self) -> float:
        return self._clock.max_duration

    @property
    def state(self) -> PlaybackState:
        return self._transport.state

    def get_track(self, track_id: "TrackId") -> Optional[TrackState]:
        return self._arena.get_track(track_id)

    def get_regions(self, index: int) -> Optional[CueRegions]:
        slot = self._arena.get_slot(index)
        return slot.regions if slot is not None else None

    # --- Loading ---

    def _init_source(self, index: int) -> None:
        slot = self._arena[index]
        track = slot.track

        if not track.has_source:
            track.load_state = LoadState.EMPTY
            self._settle(index)
            return

        source = track.media if track.media is not None else self._source_factory()
        slot.source = source
        source.volume = track.volume
        track.load_state = LoadState.LOADING
        self._pending.add(index)

        slot.subscriptions.add(
            source.on_load(lambda: self._on_source_loaded(index, source)),
            source.on_error(lambda error: self._on_source_failed(index, source, error)),
        )

        if track.url is not None:
            source.src = track.url
        elif source.duration > 0:
            # Media handed in already loaded
            self._on_source_loaded(index, source)

    def _on_source_loaded(self, index: int, source: "AudioSource") -> None:
        slot = self._arena.get_slot(index)
        if self._destroyed or slot is None or slot.source is not source or index not in self._pending:
            return
        slot.track.duration = source.duration
        slot.track.load_state = LoadState.LOADED
        logger.info("Track %r loaded (%.2fs)", slot.track.id, slot.track.duration)
        self._settle(index)

    def _on_source_failed(self, index: int, source: "AudioSource", error: Exception) -> None:
        slot = self._arena.get_slot(index)
        if self._destroyed or slot is None or slot.source is not source or index not in self._pending:
            return
        slot.track.duration = 0.0
        slot.track.load_state = LoadState.FAILED
        logger.warning("Track %r failed to load: %s", slot.track.id, error)
        self._settle(index)

    def _settle(self, index: int) -> None:
        self._pending.discard(index)
        if index in self._reloading:
            self._reloading.discard(index)
            self._finish_reload(index)
        else:
            self._check_ready()

    def _check_ready(self) -> None:
        if self._ready or self._pending or not self._initialized or self._destroyed:
            return

        self._init_durations()
        for index in range(len(self._arena)):
            self._build_track_views(index)

        self._renderer.add_click_handler(self.seek_to)
        self._ready = True
        self.emit(CANPLAY)

    def _finish_reload(self, index: int) -> None:
        if not self._ready:
            self._check_ready()
            return

        self._init_durations()
        self._build_track_views(index)
        self._clock.update_position(self._clock.current_time)
        self.emit(CANPLAY)

    def _init_durations(self) -> None:
        max_duration = self._clock.refresh_max_duration()
        self._renderer.set_main_width(self._arena.durations, max_duration)
        self._renderer.set_container_offsets()

    # --- Regions and envelope ---

    def _build_track_views(self, index: int) -> None:
        slot = self._arena[index]
        if slot.track.is_loaded:
            slot.regions = CueRegions(slot.track)
        if slot.track.has_envelope:
            slot.envelope = EnvelopeEngine.for_track(slot.track)
            self._bind_envelope(index, slot)

    def _bind_envelope(self, index: int, slot: TrackSlot) -> None:
        track, envelope = slot.track, slot.envelope
        prev_fade_in_end = track.fade_in_end
        prev_fade_out_start = track.fade_out_start

        def on_points_change(points: tuple[EnvelopePoint, ...]) -> None:
            nonlocal prev_fade_in_end, prev_fade_out_start

            fade_in = next((p for p in points if p.id == FADE_IN_END), None)
            if fade_in is not None and fade_in.time != prev_fade_in_end:
                prev_fade_in_end = track.fade_in_end = fade_in.time
                self.emit(FADE_IN_CHANGE, FadeInChange(track.id, fade_in.time))

            fade_out = next((p for p in points if p.id == FADE_OUT_START), None)
            if fade_out is not None and fade_out.time != prev_fade_out_start:
                prev_fade_out_start = track.fade_out_start = fade_out.time
                self.emit(FADE_OUT_CHANGE, FadeOutChange(track.id, fade_out.time))

            self.emit(ENVELOPE_POINTS_CHANGE, EnvelopePointsChange(track.id, points))

            # Dragged cue breakpoints move the cues
            start_cue = next((p for p in points if p.id == START_CUE), None)
            if start_cue is not None and start_cue.time != track.cue_start:
                self.set_start_cue(index, start_cue.time)
                self._snap_cue_point(envelope, START_CUE, track.cue_start)

            end_cue = next((p for p in points if p.id == END_CUE), None)
            if end_cue is not None and end_cue.time != track.cue_end:
                self.set_end_cue(index, end_cue.time)
                self._snap_cue_point(envelope, END_CUE, track.cue_end)

        def on_volume_change(volume: float) -> None:
            track.volume = volume
            self.emit(VOLUME_CHANGE, VolumeChange(track.id, volume))

        def on_start_cue_change(event: StartCueChange) -> None:
            if event.id == track.id:
                envelope.set_point_time(START_CUE, event.start_cue)

        def on_end_cue_change(event: EndCueChange) -> None:
            if event.id == track.id:
                envelope.set_point_time(END_CUE, event.end_cue)

        slot.subscriptions.add(
            envelope.on(POINTS_CHANGE, on_points_change),
            envelope.on(VOLUME_CHANGE, on_volume_change),
            self.on(START_CUE_CHANGE, on_start_cue_change),
            self.on(END_CUE_CHANGE, on_end_cue_change),
        )

    @staticmethod
    def _snap_cue_point(envelope: EnvelopeEngine, point_id: str, cue: Optional[float]) -> None:
        """Move a cue breakpoint back onto the cue when the drag was clamped."""
        point = envelope.get_point(point_id)
        if cue is not None and point is not None and point.time != cue:
            envelope.set_point_time(point_id, cue)

    def set_start_cue(self, index: int, time: float) -> bool:
        """Resize the start cue region of a track."""
        slot = self._arena.get_slot(index)
        if slot is None or self._destroyed:
            return False
        track = slot.track

        if slot.regions is not None and slot.regions.has_cues:
            time = slot.regions.resize_start_cue(time)
        else:
            time = max(0.0, time)
            if track.cue_end is not None:
                time = min(time, track.cue_end)

        if time == track.cue_start:
            return False
        track.cue_start = time
        self._clock.update_position(self._clock.current_time)
        self.emit(START_CUE_CHANGE, StartCueChange(track.id, time))
        return True

    def set_end_cue(self, index: int, time: float) -> bool:
        """Resize the end cue region of a track."""
        slot = self._arena.get_slot(index)
        if slot is None or self._destroyed:
            return False
        track = slot.track

        if slot.regions is not None and slot.regions.has_cues:
            time = slot.regions.resize_end_cue(time)
        else:
            low = track.cue_start if track.cue_start is not None else 0.0
            time = max(low, time)
            if track.duration > 0:
                time = min(time, track.duration)

        if time == track.cue_end:
            return False
        track.cue_end = time
        self._clock.update_position(self._clock.current_time)
        self.emit(END_CUE_CHANGE, EndCueChange(track.id, time))
        return True

    def set_intro_end(self, index: int, time: float) -> bool:
        slot = self._arena.get_slot(index)
        if slot is None or slot.track.intro is None or self._destroyed:
            return False

        if slot.regions is not None and slot.regions.intro is not None:
            time = slot.regions.resize_intro(time)
        slot.track.intro.end_time = time
        self.emit(INTRO_END_CHANGE, IntroEndChange(slot.track.id, time))
        return True

    # --- Clock and transport ---

    def _reconcile(self, time: float) -> None:
        self._transport.reconcile(time)

    def play(self) -> None:
        if self._destroyed:
            logger.warning("play() called on a destroyed engine")
            return
        self._transport.play()

    def pause(self) -> None:
        if self._destroyed:
            return
        self._transport.pause()

    def is_playing(self) -> bool:
        return self._transport.is_playing()

    def get_current_time(self) -> float:
        return self._clock.current_time

    def seek_to(self, position: float) -> None:
        """Position percentage from 0 to 1."""
        if self._destroyed:
            return
        self._transport.seek_to(position)
        logger.info("Seek to %.3fs", self._clock.current_time)

    def set_time(self, time: float) -> None:
        """Set time in seconds."""
        if self._destroyed:
            return
        self._transport.set_time(time)

    # --- Dragging ---

    def drag_track(self, index: int, delta: float) -> bool:
        """Apply a normalized drag delta to a track. Returns True if it moved."""
        if self._destroyed:
            return False
        return self._drag.reposition(index, delta)

    def drag_gesture(self, index: int) -> DragGesture:
        """Pointer gesture that drags the track at `index`, honoring `right_button_drag`."""
        return DragGesture(
            lambda delta: self.drag_track(index, delta),
            right_button_drag=self.options.right_button_drag
        )

    def _on_drag_commit(self, index: int, offset: float) -> None:
        self._init_durations()
        self._clock.update_position(self._clock.current_time)
        self.emit(START_POSITION_CHANGE, StartPositionChange(self._arena[index].track.id, offset))

    def _on_drop(self, track_id: "TrackId") -> None:
        self.emit(DROP, Drop(track_id))

    # --- Geometry ---

    def zoom(self, px_per_sec: float) -> None:
        self.options.min_px_per_sec = px_per_sec
        self._renderer.zoom(px_per_sec)
        self._renderer.set_main_width(self._arena.durations, self._clock.max_duration)
        self._renderer.set_container_offsets()

    # --- Tracks ---

    def add_or_replace_track(self, track: TrackState) -> bool:
        """
        Replace the track with the same id and reload its source.
        Tracks with unknown ids are ignored.

        Returns:
            True if a track was replaced
        """
        if self._destroyed:
            return False
        index = self._arena.index_of(track.id)
        if index == -1:
            logger.warning("No track with id %r to replace", track.id)
            return False

        self._arena[index].release()
        self._pending.discard(index)
        self._arena.replace(index, self._copy_track(track))
        self._reloading.add(index)
        logger.info("Replacing track %r", track.id)
        self._init_source(index)
        return True

    def set_track_volume(self, index: int, volume: float) -> None:
        slot = self._arena.get_slot(index)
        if slot is None:
            return
        volume = min(1.0, max(0.0, volume))

        if slot.envelope is not None:
            slot.envelope.set_volume(volume)
            # Push the new curve to the source even while paused
            self._clock.update_position(self._clock.current_time)
            return

        slot.track.volume = volume
        if slot.source is not None:
            slot.source.volume = volume
        self.emit(VOLUME_CHANGE, VolumeChange(slot.track.id, volume))

    def get_envelope_points(self, index: int) -> Optional[list[EnvelopePoint]]:
        slot = self._arena.get_slot(index)
        if slot is None or slot.envelope is None:
            return None
        return slot.envelope.get_points()

    def set_envelope_points(self, index: int, points: Iterable[EnvelopePoint]) -> None:
        slot = self._arena.get_slot(index)
        if slot is not None and slot.envelope is not None:
            slot.envelope.set_points(points)

    def set_output_device(self, device: Any) -> None:
        """Route every source that supports it to another output device."""
        for slot in self._arena:
            set_device = getattr(slot.source, 'set_output_device', None)
            if set_device is not None:
                set_device(device)

    def destroy(self) -> None:
        """Stop the loop and release everything. Safe to call more than once."""
        if self._destroyed:
            return
        self._destroyed = True
        self._clock.destroy()

        for slot in self._arena:
            slot.release()

        self._pending.clear()
        self._reloading.clear()
        self._renderer.destroy()
        self.remove_all_listeners()
        logger.info("MultitrackEngine destroyed")
