"""
Tests for the Qt bridge: timer scheduling and signal forwarding.
"""
import pytest

from PyQt6.QtCore import QCoreApplication, QEventLoop, QTimer

from multitrack.core import events
from multitrack.core.track import EnvelopePoint, TrackState
from multitrack.ui.qt_bridge import MultitrackSignals, QtScheduler


@pytest.fixture(scope="module")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def run_loop(timeout_ms=500):
    loop = QEventLoop()
    QTimer.singleShot(timeout_ms, loop.quit)
    return loop


class TestQtScheduler:

    def test_callback_runs_once(self, qapp):
        scheduler = QtScheduler(interval_ms=1)
        loop = run_loop()
        calls = []

        def callback():
            calls.append(True)
            loop.quit()

        handle = scheduler.schedule(callback)
        assert handle.pending
        loop.exec()

        assert calls == [True]
        assert not handle.pending

    def test_cancelled_callback_never_runs(self, qapp):
        scheduler = QtScheduler(interval_ms=1)
        calls = []
        handle = scheduler.schedule(lambda: calls.append(True))
        handle.cancel()
        handle.cancel()

        run_loop(50).exec()
        assert calls == []


class TestMultitrackSignals:

    @pytest.fixture
    def signals(self, qapp, two_track_engine):
        signals = MultitrackSignals(two_track_engine)
        yield signals
        signals.detach()

    def test_start_position_forwarded(self, signals, two_track_engine):
        seen = []
        signals.startPositionChanged.connect(lambda track_id, start: seen.append((track_id, start)))
        two_track_engine.drag_track(1, 0.2)
        assert len(seen) == 1
        assert seen[0][0] == "b"
        assert seen[0][1] == pytest.approx(8.0)

    def test_volume_forwarded(self, signals, two_track_engine):
        seen = []
        signals.volumeChanged.connect(lambda track_id, volume: seen.append((track_id, volume)))
        two_track_engine.set_track_volume(0, 0.5)
        assert seen == [("a", 0.5)]

    def test_drop_forwarded(self, signals, two_track_engine):
        seen = []
        signals.dropped.connect(seen.append)
        two_track_engine.emit(events.DROP, events.Drop("a"))
        assert seen == ["a"]

    def test_detach(self, signals, two_track_engine):
        seen = []
        signals.volumeChanged.connect(lambda *args: seen.append(args))
        signals.detach()
        two_track_engine.set_track_volume(0, 0.5)
        assert seen == []
        assert two_track_engine.listener_count(events.VOLUME_CHANGE) == 0


def test_envelope_points_forwarded(qapp, make_engine):
    engine = make_engine([TrackState(id="t", url="t.wav", envelope=True)])
    signals = MultitrackSignals(engine)
    seen = []
    signals.envelopePointsChanged.connect(lambda track_id, points: seen.append((track_id, points)))

    engine.set_envelope_points(0, [EnvelopePoint(0.0, 0.5)])
    assert seen == [("t", [EnvelopePoint(0.0, 0.5)])]
    signals.detach()
