"""
Event emitter and subscription handles used to wire the engine together.

Every `on()` returns a `Subscription`; subscriptions tied to a track are
collected in a `SubscriptionList` and disposed when the track is replaced or
the engine is destroyed.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Optional
import logging

from .track import EnvelopePoint
from .types import TrackId

logger = logging.getLogger("Multitrack")

# Event names
CANPLAY = 'canplay'
START_POSITION_CHANGE = 'start-position-change'
START_CUE_CHANGE = 'start-cue-change'
END_CUE_CHANGE = 'end-cue-change'
FADE_IN_CHANGE = 'fade-in-change'
FADE_OUT_CHANGE = 'fade-out-change'
ENVELOPE_POINTS_CHANGE = 'envelope-points-change'
VOLUME_CHANGE = 'volume-change'
INTRO_END_CHANGE = 'intro-end-change'
DROP = 'drop'

# Envelope-local events
POINTS_CHANGE = 'points-change'


# Payloads

@dataclass(frozen=True, slots=True)
class StartPositionChange:
    id: TrackId
    start_position: float


@dataclass(frozen=True, slots=True)
class StartCueChange:
    id: TrackId
    start_cue: float


@dataclass(frozen=True, slots=True)
class EndCueChange:
    id: TrackId
    end_cue: float


@dataclass(frozen=True, slots=True)
class FadeInChange:
    id: TrackId
    fade_in_end: float


@dataclass(frozen=True, slots=True)
class FadeOutChange:
    id: TrackId
    fade_out_start: float


@dataclass(frozen=True, slots=True)
class EnvelopePointsChange:
    id: TrackId
    points: tuple[EnvelopePoint, ...]


@dataclass(frozen=True, slots=True)
class VolumeChange:
    id: TrackId
    volume: float


@dataclass(frozen=True, slots=True)
class IntroEndChange:
    id: TrackId
    end_time: float


@dataclass(frozen=True, slots=True)
class Drop:
    id: TrackId


class Subscription:
    """Handle to a single listener registration."""
    __slots__ = ('_emitter', '_event', '_callback')

    def __init__(self, emitter: "EventEmitter", event: str, callback: Callable[..., Any]):
        self._emitter: Optional[EventEmitter] = emitter
        self._event = event
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._emitter is not None

    def dispose(self) -> None:
        if self._emitter is not None:
            self._emitter._remove(self._event, self._callback)
            self._emitter = None

    # Subscriptions are usable wherever a plain unsubscribe callable is expected
    __call__ = dispose


class SubscriptionList:
    """Disposal list. Everything added is released by a single `dispose()`."""

    def __init__(self):
        self._items: list[Callable[[], None]] = []

    def add(self, *items: Callable[[], None]) -> None:
        self._items.extend(items)

    def dispose(self) -> None:
        items, self._items = self._items, []
        for item in reversed(items):
            item()

    def __len__(self) -> int:
        return len(self._items)


class EventEmitter:
    """
    Minimal synchronous emitter.
    Listener errors are logged and never interrupt the emitting code.
    """

    def __init__(self):
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

    def on(self, event: str, callback: Callable[..., Any]) -> Subscription:
        self._listeners.setdefault(event, []).append(callback)
        return Subscription(self, event, callback)

    def once(self, event: str, callback: Callable[..., Any]) -> Subscription:
        subscription: Optional[Subscription] = None

        def wrapper(*args: Any) -> None:
            if subscription is not None:
                subscription.dispose()
            callback(*args)

        subscription = self.on(event, wrapper)
        return subscription

    def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, ())):
            try:
                callback(*args)
            except Exception as e:
                logger.error("Listener for '%s' failed: %s", event, e, exc_info=True)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    def _remove(self, event: str, callback: Callable[..., Any]) -> None:
        listeners = self._listeners.get(event)
        if listeners and callback in listeners:
            listeners.remove(callback)
