"""Tests for session state entities."""

from shadow_drill.l1_entities.session_state import (
    LoopRange,
    PracticeMode,
    RecordingPhase,
    SessionNotice,
    SessionState,
)
from tests.conftest import make_clip


class TestLoopRange:
    def test_empty_by_default(self):
        assert LoopRange().is_empty

    def test_one_marker_not_empty(self):
        assert not LoopRange(b=12.0).is_empty

    def test_unset_markers_fall_back_to_clip_bounds(self):
        clip = make_clip(start_time=10.0, end_time=20.0)
        assert LoopRange().effective_bounds(clip) == (10.0, 20.0)
        assert LoopRange(a=12.0).effective_bounds(clip) == (12.0, 20.0)
        assert LoopRange(b=15.0).effective_bounds(clip) == (10.0, 15.0)


class TestSessionState:
    def test_defaults(self):
        state = SessionState()
        assert state.mode == PracticeMode.PRACTICE
        assert state.phase == RecordingPhase.IDLE
        assert not state.unlocked
        assert not state.looping
        assert state.loop.is_empty
        assert state.active_index is None

    def test_loop_not_shared_between_instances(self):
        first = SessionState()
        first.loop.a = 3.0
        assert SessionState().loop.a is None

    def test_is_recording(self):
        state = SessionState(phase=RecordingPhase.RECORDING)
        assert state.is_recording
        state.phase = RecordingPhase.REVIEWING
        assert not state.is_recording


class TestSessionNotice:
    def test_default_level_is_info(self):
        assert SessionNotice(message='saved').level == 'info'
