"""Synchronized multitrack audio playback engine."""
from .core import MultitrackEngine, MultitrackOptions, TrackState, EnvelopePoint

__version__ = "0.1.0"

__all__ = ['MultitrackEngine', 'MultitrackOptions', 'TrackState', 'EnvelopePoint']
