from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from multitrack.core.config import SYNC_CONFIG
from multitrack.core.events import (
    CANPLAY, DROP, END_CUE_CHANGE, ENVELOPE_POINTS_CHANGE, FADE_IN_CHANGE,
    FADE_OUT_CHANGE, INTRO_END_CHANGE, START_CUE_CHANGE, START_POSITION_CHANGE,
    VOLUME_CHANGE, SubscriptionList
)
from multitrack.utils.logger import logger


class QtTimerHandle:
    __slots__ = ('_timer',)

    def __init__(self, timer):
        self._timer = timer

    @property
    def pending(self):
        return self._timer is not None

    def cancel(self):
        if self._timer is not None:
            self._timer.stop()
            self._timer.deleteLater()
            self._timer = None


class QtScheduler:
    """
    Runs each scheduled callback once on the Qt event loop after
    `interval_ms`. Drives the sync loop in Qt applications.
    """

    def __init__(self, interval_ms=SYNC_CONFIG.tick_interval_ms, parent=None):
        self.interval_ms = interval_ms
        self._parent = parent

    def schedule(self, callback):
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(self.interval_ms)
        handle = QtTimerHandle(timer)

        def on_timeout():
            handle.cancel()
            callback()

        timer.timeout.connect(on_timeout)
        timer.start()
        return handle


class MultitrackSignals(QObject):
    """Re-emits the engine's events as Qt signals for widgets to connect to."""
    canPlay = pyqtSignal()
    startPositionChanged = pyqtSignal(object, float)
    startCueChanged = pyqtSignal(object, float)
    endCueChanged = pyqtSignal(object, float)
    fadeInChanged = pyqtSignal(object, float)
    fadeOutChanged = pyqtSignal(object, float)
    envelopePointsChanged = pyqtSignal(object, object)
    volumeChanged = pyqtSignal(object, float)
    introEndChanged = pyqtSignal(object, float)
    dropped = pyqtSignal(object)

    def __init__(self, engine, parent=None):
        super().__init__(parent)
        self._subscriptions = SubscriptionList()
        self._subscriptions.add(
            engine.on(CANPLAY, self.canPlay.emit),
            engine.on(START_POSITION_CHANGE, lambda e: self.startPositionChanged.emit(e.id, e.start_position)),
            engine.on(START_CUE_CHANGE, lambda e: self.startCueChanged.emit(e.id, e.start_cue)),
            engine.on(END_CUE_CHANGE, lambda e: self.endCueChanged.emit(e.id, e.end_cue)),
            engine.on(FADE_IN_CHANGE, lambda e: self.fadeInChanged.emit(e.id, e.fade_in_end)),
            engine.on(FADE_OUT_CHANGE, lambda e: self.fadeOutChanged.emit(e.id, e.fade_out_start)),
            engine.on(ENVELOPE_POINTS_CHANGE, lambda e: self.envelopePointsChanged.emit(e.id, list(e.points))),
            engine.on(VOLUME_CHANGE, lambda e: self.volumeChanged.emit(e.id, e.volume)),
            engine.on(INTRO_END_CHANGE, lambda e: self.introEndChanged.emit(e.id, e.end_time)),
            engine.on(DROP, lambda e: self.dropped.emit(e.id)),
        )
        logger.debug("MultitrackSignals attached")

    def detach(self):
        """Stop forwarding engine events."""
        self._subscriptions.dispose()
