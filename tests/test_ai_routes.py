"""Tests for the /api/ai routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_ai_service, limiter
from src.domain.entities.client_result import ConfigurationError
from src.domain.entities.conversation import (
    ConnectionDomain,
    ConversationAnalysis,
    GeneratedQuestion,
    SessionSummary,
)
from src.main import app


@pytest.fixture
def service():
    svc = MagicMock()
    svc.analyze_conversation = AsyncMock(
        return_value=ConversationAnalysis(
            explored_domains=[ConnectionDomain.EMOTIONS],
            unexplored_domains=[ConnectionDomain.ASPIRATIONS],
            connection_depth=4,
            suggested_domain=ConnectionDomain.ASPIRATIONS,
            reasoning="r",
        )
    )
    svc.generate_question = AsyncMock(
        return_value=GeneratedQuestion(question="What's next for you?", domain=ConnectionDomain.ASPIRATIONS)
    )
    svc.should_ask_question = AsyncMock(return_value=True)
    svc.session_summary = AsyncMock(
        return_value=SessionSummary(key_themes=["music"], insights="Fun.", connection_depth=3)
    )
    return svc


@pytest.fixture
async def client(service):
    app.dependency_overrides[get_ai_service] = lambda: service
    limiter.enabled = False
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_analyze_returns_camel_case_result(client, service):
    resp = await client.post(
        "/api/ai/analyze-conversation",
        json={"transcript": "Ana: hi", "vibe": "fun", "askedQuestions": ["Q1"]},
    )
    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["exploredDomains"] == ["emotions"]
    assert result["connectionDepth"] == 4
    assert result["suggestedDomain"] == "aspirations"
    request = service.analyze_conversation.call_args.args[0]
    assert request.asked_questions == ["Q1"]


@pytest.mark.asyncio
async def test_analyze_failure_is_500_with_error(client, service):
    service.analyze_conversation.side_effect = ValueError("No JSON object in LLM response")
    resp = await client.post("/api/ai/analyze-conversation", json={"transcript": "t"})
    assert resp.status_code == 500
    assert "error" in resp.json()


@pytest.mark.asyncio
async def test_generate_question(client, service):
    resp = await client.post(
        "/api/ai/generate-question",
        json={"context": {"systemPrompt": "SYS", "userPrompt": "USER"}},
    )
    assert resp.status_code == 200
    assert resp.json()["result"]["question"] == "What's next for you?"
    request = service.generate_question.call_args.args[0]
    assert request.context.system_prompt == "SYS"


@pytest.mark.asyncio
async def test_generate_question_missing_key_is_500(client, service):
    service.generate_question.side_effect = ConfigurationError("OpenAI API key not configured")
    resp = await client.post(
        "/api/ai/generate-question",
        json={"context": {"systemPrompt": "SYS", "userPrompt": "USER"}},
    )
    assert resp.status_code == 500
    assert resp.json() == {"error": "OpenAI API key not configured"}


@pytest.mark.asyncio
async def test_generate_question_rejects_missing_prompts(client):
    resp = await client.post("/api/ai/generate-question", json={"context": {"systemPrompt": "SYS"}})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_should_ask(client, service):
    resp = await client.post(
        "/api/ai/should-ask-question",
        json={"recentTranscript": "Ana: ok", "lastQuestionTime": 1000, "currentTime": 50000},
    )
    assert resp.status_code == 200
    assert resp.json() == {"shouldAsk": True}
    request = service.should_ask_question.call_args.args[0]
    assert request.last_question_time == 1000
    assert request.current_time == 50000


@pytest.mark.asyncio
async def test_session_summary(client):
    resp = await client.post(
        "/api/ai/session-summary",
        json={"transcript": "t", "vibe": "fun", "duration": 10, "questionsAnswered": 2},
    )
    assert resp.status_code == 200
    assert resp.json()["result"] == {"keyThemes": ["music"], "insights": "Fun.", "connectionDepth": 3}
