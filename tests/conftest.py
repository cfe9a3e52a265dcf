"""
Pytest configuration and fixtures for multitrack tests.
"""
import pytest
from typing import Callable, Optional

from multitrack.core.config import MultitrackOptions
from multitrack.core.engine import MultitrackEngine
from multitrack.core.track import TrackState


class FakeAudioSource:
    """
    In-memory audio source. Time only moves when a test calls `advance()`
    or `jump()`; seeks made by the engine are recorded in `seeks`.
    """

    def __init__(self, catalog: Optional["FakeCatalog"] = None, duration: float = 0.0):
        self._catalog = catalog
        self._src = None
        self._duration = duration
        self._time = 0.0
        self._paused = True
        self._muted = False
        self.volume = 1.0
        self.seeks: list[float] = []
        self.mute_writes = 0
        self.play_calls = 0
        self.released = False
        self.output_device = None
        self._load_callbacks: list = []
        self._error_callbacks: list = []

    # Loading
    @property
    def src(self):
        return self._src

    @src.setter
    def src(self, value):
        self._src = value
        if value and self._catalog is not None and value not in self._catalog.deferred:
            self.complete_load()

    def complete_load(self):
        if self._catalog is not None and self._src in self._catalog.failing:
            for callback in list(self._error_callbacks):
                callback(RuntimeError(f"cannot decode {self._src}"))
            return
        if self._catalog is not None:
            self._duration = self._catalog.durations.get(self._src, 10.0)
        for callback in list(self._load_callbacks):
            callback()

    def on_load(self, callback):
        self._load_callbacks.append(callback)
        return lambda: self._load_callbacks.remove(callback)

    def on_error(self, callback):
        self._error_callbacks.append(callback)
        return lambda: self._error_callbacks.remove(callback)

    @property
    def duration(self):
        return self._duration

    # Position
    @property
    def current_time(self):
        return self._time

    @current_time.setter
    def current_time(self, value):
        self.seeks.append(value)
        self._time = value

    def jump(self, value):
        """Move the source as if it had played there on its own."""
        self._time = value

    def advance(self, seconds):
        if not self._paused:
            self._time += seconds

    @property
    def muted(self):
        return self._muted

    @muted.setter
    def muted(self, value):
        self.mute_writes += 1
        self._muted = value

    # Playback
    @property
    def paused(self):
        return self._paused

    def play(self):
        self.play_calls += 1
        self._paused = False

    def pause(self):
        self._paused = True

    def set_output_device(self, device):
        self.output_device = device

    def release(self):
        self._paused = True
        self._src = None
        self.released = True


class FakeCatalog:
    """Decides what each url loads as, and keeps every source it made."""

    def __init__(self):
        self.durations: dict[str, float] = {}
        self.failing: set[str] = set()
        self.deferred: set[str] = set()
        self.sources: list[FakeAudioSource] = []

    def factory(self) -> FakeAudioSource:
        source = FakeAudioSource(self)
        self.sources.append(source)
        return source

    def source_for(self, url: str) -> FakeAudioSource:
        matches = [s for s in self.sources if s.src == url]
        return matches[-1]


class ManualHandle:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Virtual tick source: callbacks run only when a test calls `tick()`."""

    def __init__(self):
        self.pending: list[ManualHandle] = []

    def schedule(self, callback):
        handle = ManualHandle(callback)
        self.pending.append(handle)
        return handle

    @property
    def has_pending(self) -> bool:
        return any(not h.cancelled for h in self.pending)

    def tick(self) -> int:
        handles, self.pending = self.pending, []
        ran = 0
        for handle in handles:
            if not handle.cancelled:
                handle.callback()
                ran += 1
        return ran


class RecordingRenderer:
    def __init__(self):
        self.calls: list[str] = []
        self.cursor: list[tuple[float, bool]] = []
        self.widths: list[tuple[list[float], float]] = []
        self.click_handlers: list[Callable] = []
        self.drop_handlers: list[Callable] = []
        self.zoom_levels: list[float] = []
        self.on_cursor: Optional[Callable[[], None]] = None
        self.destroyed = False

    def set_container_offsets(self):
        self.calls.append('set_container_offsets')

    def set_main_width(self, durations, max_duration):
        self.calls.append('set_main_width')
        self.widths.append((list(durations), max_duration))

    def update_cursor(self, position, auto_center):
        self.cursor.append((position, auto_center))
        if self.on_cursor is not None:
            self.on_cursor()

    def add_click_handler(self, handler):
        self.click_handlers.append(handler)

    def add_drop_handler(self, handler):
        self.drop_handlers.append(handler)

    def zoom(self, px_per_sec):
        self.zoom_levels.append(px_per_sec)

    def destroy(self):
        self.destroyed = True


class FakeOutput:
    def __init__(self, suspended=True):
        self.suspended = suspended
        self.resume_calls = 0

    def resume(self):
        self.resume_calls += 1
        self.suspended = False


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def make_engine(catalog, scheduler, renderer):
    """Build an engine wired to the fakes. Durations are given per url."""
    engines = []

    def factory(tracks, options=None, durations=None, **kwargs) -> MultitrackEngine:
        catalog.durations.update(durations or {})
        engine = MultitrackEngine(
            tracks,
            options or MultitrackOptions(),
            renderer=renderer,
            scheduler=scheduler,
            source_factory=catalog.factory,
            **kwargs
        )
        engines.append(engine)
        return engine

    yield factory

    for engine in engines:
        engine.destroy()


@pytest.fixture
def two_track_engine(make_engine):
    """A at 0s and B at 5s, both 10s long: a 15s timeline."""
    return make_engine(
        [
            TrackState(id="a", url="a.wav", offset=0.0),
            TrackState(id="b", url="b.wav", offset=5.0, draggable=True),
        ],
        durations={"a.wav": 10.0, "b.wav": 10.0},
    )
