"""Rate limiting of the /api/ai routes and /health."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from src.api.container import Container, reset_container, set_container
from src.api.dependencies import get_ai_service, limiter
from src.domain.entities.client_result import TransportFailure
from src.domain.ports.config import AppConfig, RemoteAIConfig, SecurityConfig
from src.infrastructure.facilitation import TimingOracle
from src.infrastructure.facilitation.remote import SESSION_HEADER, RemoteAIClient
from src.infrastructure.resilience import CircuitBreaker, CircuitBreakerConfig, CircuitState
from src.main import app

NOW = 1_700_000_000_000
SHOULD_ASK = {"recentTranscript": "Ana: so", "lastQuestionTime": NOW - 45_000, "currentTime": NOW}


@pytest.fixture
def service():
    svc = MagicMock()
    svc.should_ask_question = AsyncMock(return_value=True)
    return svc


@pytest.fixture
def container(service):
    """Two requests per minute per bucket."""
    c = Container(AppConfig(security=SecurityConfig(rate_limit_requests_per_minute=2)))
    c.llm = MagicMock()
    c.llm.is_available = AsyncMock(return_value=True)
    set_container(c)
    app.dependency_overrides[get_ai_service] = lambda: service
    limiter.reset()
    yield c
    limiter.reset()
    app.dependency_overrides.clear()
    reset_container()


async def _should_ask(client: AsyncClient, session: str | None = None) -> int:
    headers = {SESSION_HEADER: session} if session else {}
    resp = await client.post("/api/ai/should-ask-question", json=SHOULD_ASK, headers=headers)
    return resp.status_code


@pytest.mark.asyncio
async def test_configured_rate_limits_ai_routes(container):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        assert [await _should_ask(client) for _ in range(3)] == [200, 200, 429]


@pytest.mark.asyncio
async def test_configured_rate_limits_health(container):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        codes = [(await client.get("/health")).status_code for _ in range(3)]
    assert codes == [200, 200, 429]


@pytest.mark.asyncio
async def test_loopback_sessions_have_separate_buckets(container):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        assert [await _should_ask(client, "s-1") for _ in range(2)] == [200, 200]
        assert [await _should_ask(client, "s-2") for _ in range(2)] == [200, 200]
        assert await _should_ask(client, "s-1") == 429
        # Header-less loopback callers keep their own address bucket.
        assert await _should_ask(client) == 200


@pytest.mark.asyncio
async def test_session_header_ignored_from_other_hosts(container):
    transport = ASGITransport(app=app, client=("203.0.113.7", 40000))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        codes = [await _should_ask(client, session) for session in ("a", "b", "c")]
    assert codes == [200, 200, 429]


@pytest.mark.asyncio
async def test_rate_limited_engine_does_not_open_shared_breaker(container, service):
    """One busy engine getting 429s leaves the other engines' calls flowing."""
    http = httpx.AsyncClient(transport=ASGITransport(app=app))
    breaker = CircuitBreaker(
        "remote_ai_test",
        CircuitBreakerConfig(failure_threshold=1, tracked_exceptions=(TransportFailure,)),
    )
    remote = RemoteAIClient(RemoteAIConfig(base_url="http://test/api/ai"), client=http, breaker=breaker)
    busy = TimingOracle(remote, session_id="busy")
    quiet = TimingOracle(remote, session_id="quiet")

    assert await busy.should_ask_question("Ana: so", NOW - 45_000, NOW) is True
    assert await busy.should_ask_question("Ana: so", NOW - 45_000, NOW) is True
    # Third call is rejected; the 45s elapsed-time fallback says no.
    assert await busy.should_ask_question("Ana: so", NOW - 45_000, NOW) is False

    assert breaker.state is CircuitState.CLOSED
    assert await quiet.should_ask_question("Ana: so", NOW - 45_000, NOW) is True
    assert service.should_ask_question.await_count == 3
    await http.aclose()


@pytest.mark.asyncio
async def test_container_engines_tag_calls_with_their_session(container):
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get(SESSION_HEADER))
        return httpx.Response(200, json={"shouldAsk": True})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    container.remote_ai = RemoteAIClient(RemoteAIConfig(base_url="http://test/api/ai"), client=http)
    first = container.sessions.create()
    second = container.sessions.create()

    await first.engine._timing.should_ask_question("Ana: so", NOW - 45_000, NOW)
    await second.engine._timing.should_ask_question("Ana: so", NOW - 45_000, NOW)

    assert seen == [first.id, second.id]
    await container.sessions.close_all()
    await http.aclose()
