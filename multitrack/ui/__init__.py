"""
Multitrack UI Module

Qt integration for the engine:
- QtScheduler: QTimer-backed tick scheduler
- MultitrackSignals: engine events as Qt signals
"""
from .qt_bridge import MultitrackSignals, QtScheduler, QtTimerHandle

__all__ = ['MultitrackSignals', 'QtScheduler', 'QtTimerHandle']
