"""
Tests for DragRepositioner and DragGesture.
"""
import pytest

from multitrack.core import events
from multitrack.core.config import MultitrackOptions
from multitrack.core.drag import DragGesture
from multitrack.core.track import TrackState


@pytest.fixture
def anchored(make_engine):
    """
    Main track at 10s lasting 6s and a draggable 3s track at 8s.
    Timeline is 16s long, so deltas of n/16 move by whole seconds.
    """
    return make_engine(
        [
            TrackState(id="main", url="main.wav", offset=10.0),
            TrackState(id="clip", url="clip.wav", offset=8.0, draggable=True),
        ],
        durations={"main.wav": 6.0, "clip.wav": 3.0},
    )


def record(engine, event):
    seen = []
    # canplay carries no payload and is recorded as None
    engine.on(event, lambda *args: seen.append(args[0] if args else None))
    return seen


class TestBounds:

    def test_bounds_follow_main_track(self, anchored):
        assert anchored._drag.bounds(1) == (7.0, 16.0)

    def test_accepts_min_start(self, anchored):
        moves = record(anchored, events.START_POSITION_CHANGE)
        assert anchored.drag_track(1, -1 / 16)
        assert anchored.get_track("clip").offset == 7.0
        assert moves == [events.StartPositionChange("clip", 7.0)]

    def test_accepts_max_start(self, anchored):
        assert anchored.drag_track(1, 0.5)
        assert anchored.get_track("clip").offset == 16.0
        assert anchored.max_duration == 19.0

    def test_rejects_just_below_min_start(self, anchored):
        moves = record(anchored, events.START_POSITION_CHANGE)
        assert not anchored.drag_track(1, -1.01 / 16)
        assert anchored.get_track("clip").offset == 8.0
        assert anchored.max_duration == 16.0
        assert moves == []

    def test_rejects_past_max_start(self, anchored):
        assert not anchored.drag_track(1, 9 / 16)
        assert anchored.get_track("clip").offset == 8.0

    def test_main_track_is_not_draggable(self, anchored):
        assert not anchored.drag_track(0, 0.1)
        assert anchored.get_track("main").offset == 10.0

    def test_unknown_index_is_ignored(self, anchored):
        assert not anchored.drag_track(7, 0.1)


class TestNoMainTrack:

    def make(self, make_engine, drag_bounds):
        return make_engine(
            [
                TrackState(id="x", url="x.wav", offset=2.0, draggable=True),
                TrackState(id="y", url="y.wav", offset=0.0, draggable=True),
            ],
            options=MultitrackOptions(drag_bounds=drag_bounds),
            durations={"x.wav": 4.0, "y.wav": 6.0},
        )

    def test_negative_offset_allowed_without_drag_bounds(self, make_engine):
        engine = self.make(make_engine, drag_bounds=False)
        assert engine.drag_track(0, -0.5)
        assert engine.get_track("x").offset == -1.0

    def test_drag_bounds_rejects_negative_offset(self, make_engine):
        engine = self.make(make_engine, drag_bounds=True)
        assert not engine.drag_track(0, -0.5)
        assert engine.get_track("x").offset == 2.0

    def test_upper_bound_is_timeline_length(self, make_engine):
        engine = self.make(make_engine, drag_bounds=True)
        assert engine._drag.bounds(0) == (-4.0, 6.0)


class TestCommit:

    def test_max_duration_tracks_offsets(self, anchored):
        anchored.drag_track(1, 4 / 16)
        expected = max(t.offset + t.duration for t in anchored.tracks)
        assert anchored.max_duration == expected == 16.0

    def test_geometry_is_recomputed(self, anchored, renderer):
        renderer.calls.clear()
        anchored.drag_track(1, -1 / 16)
        assert renderer.calls == ['set_main_width', 'set_container_offsets']
        assert renderer.widths[-1] == ([6.0, 3.0], 16.0)

    def test_drag_resyncs_while_paused(self, anchored, catalog):
        anchored.set_time(9.0)
        clip = catalog.source_for("clip.wav")
        assert clip.current_time == 1.0

        anchored.drag_track(1, -1 / 16)
        assert clip.current_time == 2.0
        assert anchored.get_current_time() == 9.0


class TestDragGesture:

    @pytest.fixture
    def now(self):
        return [0.0]

    @pytest.fixture
    def gesture(self, now):
        deltas = []
        gesture = DragGesture(deltas.append, clock=lambda: now[0])
        gesture.deltas = deltas
        return gesture

    def test_small_moves_are_ignored(self, gesture):
        gesture.press(100.0)
        assert gesture.move(100.5, 1000.0) is None
        assert gesture.deltas == []

    def test_move_reports_fraction_of_width(self, gesture):
        gesture.press(100.0)
        assert gesture.move(110.0, 1000.0) == pytest.approx(0.01)
        assert gesture.move(105.0, 1000.0) == pytest.approx(-0.005)
        assert gesture.deltas == pytest.approx([0.01, -0.005])

    def test_move_without_press(self, gesture):
        assert gesture.move(50.0, 1000.0) is None

    def test_click_suppressed_shortly_after_drag(self, gesture, now):
        gesture.press(0.0)
        gesture.move(20.0, 1000.0)
        assert gesture.suppress_click()
        assert gesture.release()

        now[0] = 0.05
        assert gesture.suppress_click()
        now[0] = 0.2
        assert not gesture.suppress_click()

    def test_plain_click_is_not_suppressed(self, gesture):
        gesture.press(0.0)
        gesture.release()
        assert not gesture.suppress_click()

    def test_right_button_only(self):
        gesture = DragGesture(lambda d: None, right_button_drag=True)
        assert not gesture.press(0.0, button=0)
        assert not gesture.active
        assert gesture.press(0.0, button=2)
        assert gesture.active
