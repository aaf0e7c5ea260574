"""Phase machine tests."""

import pytest

from src.domain.entities.conversation import ConversationAnalysis, GeneratedQuestion
from src.domain.entities.facilitation_state import EnginePhase, PhaseEvent, SessionState, next_phase


@pytest.mark.parametrize(
    "event,phase",
    [
        (PhaseEvent.START_ANALYSIS, EnginePhase.ANALYZING),
        (PhaseEvent.START_GENERATION, EnginePhase.GENERATING),
        (PhaseEvent.START_FORCE_NEXT, EnginePhase.ANALYZING_THEN_GENERATING),
    ],
)
def test_idle_accepts_every_start(event, phase):
    assert next_phase(EnginePhase.IDLE, event) is phase


@pytest.mark.parametrize("busy", [p for p in EnginePhase if p is not EnginePhase.IDLE])
def test_busy_phases_reject_starts(busy):
    state = SessionState(phase=busy)
    for event in (PhaseEvent.START_ANALYSIS, PhaseEvent.START_GENERATION, PhaseEvent.START_FORCE_NEXT):
        assert state.apply(event) is False
        assert state.phase is busy
    assert state.apply(PhaseEvent.COMPLETE) is True
    assert state.phase is EnginePhase.IDLE


def test_complete_from_idle_rejected():
    assert SessionState().apply(PhaseEvent.COMPLETE) is False


def test_flags_follow_phase():
    state = SessionState(phase=EnginePhase.ANALYZING_THEN_GENERATING)
    assert state.is_analyzing and state.is_generating and state.is_busy
    state = SessionState(phase=EnginePhase.ANALYZING)
    assert state.is_analyzing and not state.is_generating
    assert not SessionState().is_busy


def test_record_question_appends_history():
    state = SessionState()
    state.record_question(GeneratedQuestion(question="A?"), 100)
    state.record_question(GeneratedQuestion(question="A?"), 200)
    assert state.asked_questions == ["A?", "A?"]
    assert state.current_question.question == "A?"
    assert state.last_question_time == 200


def test_record_analysis_replaces():
    state = SessionState()
    first = ConversationAnalysis(connection_depth=2)
    second = ConversationAnalysis(connection_depth=5)
    state.record_analysis(first, 10)
    state.record_analysis(second, 20)
    assert state.analysis is second
    assert state.last_analysis_time == 20
