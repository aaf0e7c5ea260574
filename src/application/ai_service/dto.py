"""Remote AI service DTOs (camelCase on the wire)."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeConversationRequest(_CamelModel):
    transcript: str = Field("", max_length=500_000)
    vibe: str = Field("mixed", max_length=50)
    asked_questions: list[str] = Field(default_factory=list)


class PromptContext(_CamelModel):
    """Prompts built by the question client."""

    system_prompt: str = Field(..., min_length=1, max_length=50_000)
    user_prompt: str = Field(..., min_length=1, max_length=50_000)


class GenerateQuestionRequest(_CamelModel):
    context: PromptContext


class ShouldAskRequest(_CamelModel):
    recent_transcript: str = Field("", max_length=500_000)
    last_question_time: int = 0  # epoch ms, 0 = never
    current_time: int


class ShouldAskResponse(_CamelModel):
    should_ask: bool


class SessionSummaryRequest(_CamelModel):
    transcript: str = Field("", max_length=500_000)
    vibe: str = Field("mixed", max_length=50)
    duration: int = Field(0, ge=0)  # minutes
    questions_answered: int = Field(0, ge=0)
