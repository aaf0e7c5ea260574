"""Facilitation DTOs."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.entities.conversation import ConversationAnalysis, GeneratedQuestion, Vibe
from src.domain.entities.facilitation_state import EnginePhase


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EngineSnapshot(_CamelModel):
    """Read-only view of an engine's session state."""

    current_question: GeneratedQuestion | None = None
    analysis: ConversationAnalysis | None = None
    asked_questions: list[str] = Field(default_factory=list)
    is_analyzing: bool = False
    is_generating: bool = False
    has_shown_first_question: bool = False
    phase: EnginePhase = EnginePhase.IDLE
    enabled: bool = False
    vibe: str = Vibe.MIXED.value
    last_question_time: int = 0
    last_analysis_time: int = 0


class CreateSessionRequest(_CamelModel):
    """Start a facilitation session. Missing fields use configured defaults."""

    vibe: Vibe | None = None
    enabled: bool | None = None
    check_interval: int | None = Field(None, gt=0)  # milliseconds


class SessionResponse(_CamelModel):
    """Session id plus its current snapshot."""

    session_id: str
    state: EngineSnapshot


class TranscriptSegmentRequest(_CamelModel):
    """One transcribed utterance appended to the session transcript."""

    text: str = Field(..., min_length=1, max_length=20_000)
    speaker: str | None = Field(None, max_length=100)


class EnableRequest(_CamelModel):
    enabled: bool


class VibeRequest(_CamelModel):
    vibe: Vibe


class SummaryRequest(_CamelModel):
    duration: int = Field(0, ge=0)  # minutes
