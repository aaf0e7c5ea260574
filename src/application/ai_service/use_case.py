"""AI service use case - the server side of the facilitation contracts.

Analysis and question generation raise on failure (the route answers 500 and
the calling client serves its own fallback). Timing and summaries degrade
here, server side, so they always answer.
"""

import logging

from src.application.ai_service.dto import (
    AnalyzeConversationRequest,
    GenerateQuestionRequest,
    SessionSummaryRequest,
    ShouldAskRequest,
)
from src.domain.entities.conversation import ConversationAnalysis, GeneratedQuestion, SessionSummary
from src.domain.ports.llm import LLMMessage, LLMPort
from src.domain.services.timing_policy import fallback_decision, interpret_answer, prefilter
from src.infrastructure.facilitation.prompts import (
    ANALYSIS_SYSTEM,
    SUMMARY_SYSTEM,
    TIMING_SYSTEM,
    build_analysis_prompt,
    build_summary_prompt,
    build_timing_prompt,
)
from src.infrastructure.facilitation.summary_client import fallback_summary
from src.infrastructure.llm.json_parser import extract_json_object
from src.infrastructure.llm.retry import generate_with_retry

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.7
QUESTION_TEMPERATURE = 0.8
TIMING_TEMPERATURE = 0.3
TIMING_MAX_TOKENS = 10
SUMMARY_TEMPERATURE = 0.7


class AIServiceUseCase:
    """Answers analysis, question, timing and summary requests with an LLM."""

    def __init__(self, llm: LLMPort, model: str) -> None:
        self._llm = llm
        self._model = model

    async def _json_completion(self, system: str, user: str, temperature: float) -> dict:
        response = await generate_with_retry(
            self._llm,
            [
                LLMMessage(role="system", content=system),
                LLMMessage(role="user", content=user),
            ],
            self._model,
            temperature=temperature,
            json_mode=True,
        )
        return extract_json_object(response.content)

    async def analyze_conversation(self, request: AnalyzeConversationRequest) -> ConversationAnalysis:
        user = build_analysis_prompt(request.transcript, request.vibe, request.asked_questions)
        data = await self._json_completion(ANALYSIS_SYSTEM, user, ANALYSIS_TEMPERATURE)
        return ConversationAnalysis.model_validate(data)

    async def generate_question(self, request: GenerateQuestionRequest) -> GeneratedQuestion:
        data = await self._json_completion(
            request.context.system_prompt,
            request.context.user_prompt,
            QUESTION_TEMPERATURE,
        )
        return GeneratedQuestion.model_validate(data)

    async def should_ask_question(self, request: ShouldAskRequest) -> bool:
        decided = prefilter(request.recent_transcript, request.last_question_time, request.current_time)
        if decided is not None:
            return decided
        try:
            response = await generate_with_retry(
                self._llm,
                [
                    LLMMessage(role="system", content=TIMING_SYSTEM),
                    LLMMessage(role="user", content=build_timing_prompt(request.recent_transcript)),
                ],
                self._model,
                temperature=TIMING_TEMPERATURE,
                max_tokens=TIMING_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("Timing judgment failed, using elapsed-time fallback: %s", e)
            return fallback_decision(request.last_question_time, request.current_time)
        return interpret_answer(response.content)

    async def session_summary(self, request: SessionSummaryRequest) -> SessionSummary:
        user = build_summary_prompt(
            request.transcript,
            request.vibe,
            request.duration,
            request.questions_answered,
        )
        try:
            data = await self._json_completion(SUMMARY_SYSTEM, user, SUMMARY_TEMPERATURE)
            return SessionSummary.model_validate(data)
        except Exception as e:
            logger.warning("Session summary failed, serving fallback: %s", e)
            return fallback_summary()
