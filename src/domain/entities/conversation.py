"""Conversation entities: connection domains, analysis, questions, summaries."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ConnectionDomain(str, Enum):
    """Thematic area a facilitation question can target."""

    VALUES_BELIEFS = "values_beliefs"
    PERSONAL_HISTORY = "personal_history"
    ASPIRATIONS = "aspirations"
    EMOTIONS = "emotions"
    RELATIONAL_STYLE = "relational_style"
    CURRENT_SITUATION = "current_situation"


ALL_DOMAINS: tuple[ConnectionDomain, ...] = tuple(ConnectionDomain)


class Vibe(str, Enum):
    """Conversational tone selector."""

    FUN = "fun"
    THOUGHTFUL = "thoughtful"
    DEEP = "deep"
    MIXED = "mixed"

    @classmethod
    def coerce(cls, value: "str | Vibe") -> "Vibe":
        """Map arbitrary input to a vibe; unknown values become MIXED."""
        if isinstance(value, Vibe):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.MIXED


class WireModel(BaseModel):
    """Base for models exchanged with the remote AI service (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_wire(self) -> dict:
        """Serialize with camelCase keys and plain enum values."""
        return self.model_dump(mode="json", by_alias=True)


class ConversationAnalysis(WireModel):
    """Which connection domains the conversation has covered so far.

    Explored and unexplored lists are taken as reported; they are not required
    to partition the full domain set.
    """

    explored_domains: list[ConnectionDomain] = Field(default_factory=list)
    unexplored_domains: list[ConnectionDomain] = Field(default_factory=list)
    connection_depth: int = 0
    suggested_domain: ConnectionDomain = ConnectionDomain.CURRENT_SITUATION
    reasoning: str = ""

    @field_validator("connection_depth", mode="before")
    @classmethod
    def _clamp_depth(cls, v):
        return max(0, min(10, int(v)))


class GeneratedQuestion(WireModel):
    """A single facilitation question. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    question: str = Field(..., min_length=1)
    domain: ConnectionDomain = ConnectionDomain.CURRENT_SITUATION
    follow_up: str | None = None
    reasoning: str = ""


class QuestionContext(WireModel):
    """Transient input for question generation; never persisted."""

    vibe: str
    conversation_analysis: ConversationAnalysis
    recent_transcript: str = ""
    asked_questions: list[str] = Field(default_factory=list)


class SessionSummary(WireModel):
    """Reflection summary produced at the end of a session."""

    key_themes: list[str] = Field(default_factory=list)
    insights: str = ""
    connection_depth: int = 0

    @field_validator("connection_depth", mode="before")
    @classmethod
    def _clamp_depth(cls, v):
        return max(0, min(10, int(v)))


def opening_analysis() -> ConversationAnalysis:
    """Synthesized analysis used before any real analysis exists."""
    return ConversationAnalysis(
        explored_domains=[],
        unexplored_domains=list(ALL_DOMAINS),
        connection_depth=0,
        suggested_domain=ConnectionDomain.CURRENT_SITUATION,
        reasoning="Starting conversation - gathering context about who is present and the situation.",
    )
