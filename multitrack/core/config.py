"""
Centralized configuration for the multitrack engine.
All magic numbers and default settings in one place.
"""
from dataclasses import dataclass
from enum import Enum, auto


class PlaybackState(Enum):
    """Transport state enumeration."""
    STOPPED = auto()
    PLAYING = auto()
    PAUSED = auto()


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Clock and reconciliation settings."""
    drift_tolerance: float = 0.3  # seconds a source may drift before a re-seek
    tick_interval_ms: int = 16  # ~60 ticks per second


@dataclass(frozen=True, slots=True)
class DragConfig:
    """Pointer drag settings."""
    move_threshold_px: float = 1.0
    click_suppress_ms: int = 100
    right_button: int = 2


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """File-backed source output settings."""
    playback_blocksize: int = 1024
    playback_channels: int = 2
    max_volume: float = 1.0
    min_volume: float = 0.0


@dataclass
class MultitrackOptions:
    """Per-engine options."""
    min_px_per_sec: float = 0.0
    drag_bounds: bool = False
    right_button_drag: bool = False


# Global config instances (immutable singletons)
SYNC_CONFIG = SyncConfig()
DRAG_CONFIG = DragConfig()
AUDIO_CONFIG = AudioConfig()
