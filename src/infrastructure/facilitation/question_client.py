"""Question client - one facilitation question per call."""

import logging

from src.domain.entities.client_result import ClientResult
from src.domain.entities.conversation import (
    ConnectionDomain,
    GeneratedQuestion,
    QuestionContext,
    Vibe,
)
from src.infrastructure.facilitation.prompts import build_question_prompts
from src.infrastructure.facilitation.remote import RemoteAIClient

logger = logging.getLogger(__name__)

GENERATE_PATH = "generate-question"

FALLBACK_QUESTIONS: dict[Vibe, str] = {
    Vibe.FUN: "Who's here today and what brings you all together?",
    Vibe.THOUGHTFUL: "Let's start with introductions - who are we with and what's the situation?",
    Vibe.DEEP: "Before we dive in, who's in the room and what brings us together today?",
    Vibe.MIXED: "Let's start - who are we with today and what's the context?",
}


def fallback_question(vibe: str) -> GeneratedQuestion:
    """Static question keyed by vibe; unknown vibes get the mixed variant."""
    return GeneratedQuestion(
        question=FALLBACK_QUESTIONS[Vibe.coerce(vibe)],
        domain=ConnectionDomain.CURRENT_SITUATION,
        reasoning="Fallback question due to API error",
    )


def _parse(data: dict) -> GeneratedQuestion:
    return GeneratedQuestion.model_validate(data["result"])


class QuestionClient:
    """Implements QuestionPort against ``POST <remote>/generate-question``."""

    def __init__(self, remote: RemoteAIClient, session_id: str | None = None) -> None:
        self._remote = remote
        self._session_id = session_id

    async def fetch_question(self, context: QuestionContext) -> ClientResult[GeneratedQuestion]:
        """Question with provenance; never raises."""
        system_prompt, user_prompt = build_question_prompts(context)
        return await self._remote.fetch(
            "generate_question",
            GENERATE_PATH,
            {"context": {"systemPrompt": system_prompt, "userPrompt": user_prompt}},
            _parse,
            lambda: fallback_question(context.vibe),
            session_id=self._session_id,
        )

    async def generate_question(self, context: QuestionContext) -> GeneratedQuestion:
        result = await self.fetch_question(context)
        return result.value
