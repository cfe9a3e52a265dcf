"""
Multitrack Core Module

This module contains the synchronization and timeline-state logic:
- MultitrackEngine: Composes everything and emits domain events
- ClockEngine: Master clock and sampling loop
- TransportController: Play/pause/seek and per-track reconciliation
- DragRepositioner: Bounded drag of track offsets
- EnvelopeEngine: Per-track volume breakpoints
- FileAudioSource: soundfile/sounddevice backed audio source
"""
from .engine import MultitrackEngine
from .arena import TrackArena, TrackSlot
from .clock import ClockEngine
from .transport import TransportController
from .drag import DragGesture, DragRepositioner
from .envelope import EnvelopeEngine
from .regions import CueRegions, Region
from .sources import FileAudioSource
from .track import EnvelopePoint, Intro, LoadState, Marker, TrackState
from .events import EventEmitter, Subscription, SubscriptionList
from .types import NullRenderer
from .config import (
    SYNC_CONFIG,
    DRAG_CONFIG,
    AUDIO_CONFIG,
    MultitrackOptions,
    PlaybackState
)
from . import events

__all__ = [
    # Main classes
    'MultitrackEngine',
    'TrackArena',
    'TrackSlot',
    'ClockEngine',
    'TransportController',
    'DragRepositioner',
    'DragGesture',
    'EnvelopeEngine',
    'CueRegions',
    'Region',
    'FileAudioSource',
    'NullRenderer',
    # Data
    'TrackState',
    'EnvelopePoint',
    'Marker',
    'Intro',
    'LoadState',
    # Events
    'EventEmitter',
    'Subscription',
    'SubscriptionList',
    'events',
    # Config
    'SYNC_CONFIG',
    'DRAG_CONFIG',
    'AUDIO_CONFIG',
    'MultitrackOptions',
    'PlaybackState',
]
