"""Facilitation engine state: explicit phase machine plus the session record."""

from dataclasses import dataclass, field
from enum import Enum

from src.domain.entities.conversation import ConversationAnalysis, GeneratedQuestion


class EnginePhase(str, Enum):
    """What the engine has in flight right now."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    ANALYZING_THEN_GENERATING = "analyzing_then_generating"


class PhaseEvent(str, Enum):
    """Inputs to the phase machine."""

    START_ANALYSIS = "start_analysis"
    START_GENERATION = "start_generation"
    START_FORCE_NEXT = "start_force_next"
    COMPLETE = "complete"


# Anything not listed is rejected; a rejected start means the request is dropped.
TRANSITIONS: dict[tuple[EnginePhase, PhaseEvent], EnginePhase] = {
    (EnginePhase.IDLE, PhaseEvent.START_ANALYSIS): EnginePhase.ANALYZING,
    (EnginePhase.IDLE, PhaseEvent.START_GENERATION): EnginePhase.GENERATING,
    (EnginePhase.IDLE, PhaseEvent.START_FORCE_NEXT): EnginePhase.ANALYZING_THEN_GENERATING,
    (EnginePhase.ANALYZING, PhaseEvent.COMPLETE): EnginePhase.IDLE,
    (EnginePhase.GENERATING, PhaseEvent.COMPLETE): EnginePhase.IDLE,
    (EnginePhase.ANALYZING_THEN_GENERATING, PhaseEvent.COMPLETE): EnginePhase.IDLE,
}

_ANALYZING_PHASES = frozenset({EnginePhase.ANALYZING, EnginePhase.ANALYZING_THEN_GENERATING})
_GENERATING_PHASES = frozenset({EnginePhase.GENERATING, EnginePhase.ANALYZING_THEN_GENERATING})


def next_phase(phase: EnginePhase, event: PhaseEvent) -> EnginePhase | None:
    """Return the phase after ``event``, or None if the transition is not allowed."""
    return TRANSITIONS.get((phase, event))


@dataclass
class SessionState:
    """Single-writer session record owned by one FacilitationEngine.

    Times are epoch milliseconds; 0 means "never".
    """

    phase: EnginePhase = EnginePhase.IDLE
    current_question: GeneratedQuestion | None = None
    analysis: ConversationAnalysis | None = None
    asked_questions: list[str] = field(default_factory=list)
    has_shown_first_question: bool = False
    last_question_time: int = 0
    last_analysis_time: int = 0

    @property
    def is_analyzing(self) -> bool:
        return self.phase in _ANALYZING_PHASES

    @property
    def is_generating(self) -> bool:
        return self.phase in _GENERATING_PHASES

    @property
    def is_busy(self) -> bool:
        return self.phase is not EnginePhase.IDLE

    def apply(self, event: PhaseEvent) -> bool:
        """Advance the phase. Returns False (and leaves state untouched) if rejected."""
        target = next_phase(self.phase, event)
        if target is None:
            return False
        self.phase = target
        return True

    def record_question(self, question: GeneratedQuestion, completed_at: int) -> None:
        """Make ``question`` current and append it to the history."""
        self.current_question = question
        self.asked_questions.append(question.question)
        self.last_question_time = completed_at

    def record_analysis(self, analysis: ConversationAnalysis, completed_at: int) -> None:
        """Replace the analysis wholesale."""
        self.analysis = analysis
        self.last_analysis_time = completed_at
