"""AI service routes - analysis, question generation, timing and summaries."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import configured_rate_limit, get_ai_service, limiter
from src.application.ai_service.dto import (
    AnalyzeConversationRequest,
    GenerateQuestionRequest,
    SessionSummaryRequest,
    ShouldAskRequest,
    ShouldAskResponse,
)
from src.application.ai_service.use_case import AIServiceUseCase
from src.domain.entities.client_result import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


@router.post("/analyze-conversation")
@limiter.limit(configured_rate_limit)
async def analyze_conversation(
    request: Request,
    body: AnalyzeConversationRequest,
    service: AIServiceUseCase = Depends(get_ai_service),
):
    """Classify explored/unexplored connection domains."""
    try:
        analysis = await service.analyze_conversation(body)
    except ConfigurationError as e:
        logger.error("Analysis unavailable: %s", e)
        return _error(str(e))
    except Exception as e:
        logger.exception("Error analyzing conversation")
        return _error(str(e) or type(e).__name__)
    return {"result": analysis.to_wire()}


@router.post("/generate-question")
@limiter.limit(configured_rate_limit)
async def generate_question(
    request: Request,
    body: GenerateQuestionRequest,
    service: AIServiceUseCase = Depends(get_ai_service),
):
    """Generate one question from client-built prompts."""
    try:
        question = await service.generate_question(body)
    except ConfigurationError as e:
        logger.error("Question generation unavailable: %s", e)
        return _error(str(e))
    except Exception as e:
        logger.exception("Error generating question")
        return _error(str(e) or type(e).__name__)
    return {"result": question.to_wire()}


@router.post("/should-ask-question", response_model=ShouldAskResponse, response_model_by_alias=True)
@limiter.limit(configured_rate_limit)
async def should_ask_question(
    request: Request,
    body: ShouldAskRequest,
    service: AIServiceUseCase = Depends(get_ai_service),
) -> ShouldAskResponse:
    """Yes/no: is this a good moment for a new question. Always answers."""
    return ShouldAskResponse(should_ask=await service.should_ask_question(body))


@router.post("/session-summary")
@limiter.limit(configured_rate_limit)
async def session_summary(
    request: Request,
    body: SessionSummaryRequest,
    service: AIServiceUseCase = Depends(get_ai_service),
):
    """Reflection summary. Degrades to a canned summary instead of failing."""
    summary = await service.session_summary(body)
    return {"result": summary.to_wire()}
