"""
Type definitions for the multitrack core module.
Provides type aliases and protocols for the collaborators the engine drives.
"""
from typing import Any, Callable, Optional, Protocol, Sequence, Union

TrackId = Union[str, int]

# Callback types
Unsubscribe = Callable[[], None]
LoadCallback = Callable[[], None]
ErrorCallback = Callable[[Exception], None]
ClickHandler = Callable[[float], None]  # normalized position 0..1
DropHandler = Callable[[TrackId], None]
TickCallback = Callable[[], None]


class AudioSource(Protocol):
    """
    A seekable, playable time source. Progresses on its own once playing;
    the engine only samples and corrects it.
    """
    current_time: float
    volume: float
    muted: bool

    @property
    def src(self) -> Optional[str]: ...

    @src.setter
    def src(self, value: Optional[str]) -> None: ...

    @property
    def duration(self) -> float: ...

    @property
    def paused(self) -> bool: ...

    def play(self) -> Any: ...
    def pause(self) -> None: ...
    def on_load(self, callback: LoadCallback) -> Unsubscribe: ...
    def on_error(self, callback: ErrorCallback) -> Unsubscribe: ...
    def release(self) -> None: ...


class Renderer(Protocol):
    """Geometry sink. The engine pushes to it and never reads back."""
    def set_container_offsets(self) -> None: ...
    def set_main_width(self, durations: Sequence[float], max_duration: float) -> None: ...
    def update_cursor(self, position: float, auto_center: bool) -> None: ...
    def add_click_handler(self, handler: ClickHandler) -> None: ...
    def add_drop_handler(self, handler: DropHandler) -> None: ...
    def zoom(self, px_per_sec: float) -> None: ...
    def destroy(self) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Schedules one callback for the next tick."""
    def schedule(self, callback: TickCallback) -> TimerHandle: ...


class OutputContext(Protocol):
    """Shared audio output that may need resuming before playback."""
    @property
    def suspended(self) -> bool: ...

    def resume(self) -> None: ...


class NullRenderer:
    """Renderer that ignores every call. Used for headless engines."""
    __slots__ = ()

    def set_container_offsets(self) -> None:
        pass

    def set_main_width(self, durations: Sequence[float], max_duration: float) -> None:
        pass

    def update_cursor(self, position: float, auto_center: bool) -> None:
        pass

    def add_click_handler(self, handler: ClickHandler) -> None:
        pass

    def add_drop_handler(self, handler: DropHandler) -> None:
        pass

    def zoom(self, px_per_sec: float) -> None:
        pass

    def destroy(self) -> None:
        pass
