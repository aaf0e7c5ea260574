"""FastAPI dependencies - resolved from the DI container."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.api.container import get_container
from src.api.store import SessionsStore
from src.application.ai_service.use_case import AIServiceUseCase
from src.domain.ports.config import AppConfig
from src.infrastructure.facilitation.remote import SESSION_HEADER

LOOPBACK_HOSTS = frozenset({"127.0.0.1", "::1", "localhost"})


def rate_limit_key(request: Request) -> str:
    """Per-session bucket for in-process engines, per-address for everyone else.

    The session header is only trusted from loopback, where this app's own
    engines call the /api/ai routes.
    """
    address = get_remote_address(request)
    session_id = request.headers.get(SESSION_HEADER)
    if session_id and address in LOOPBACK_HOSTS:
        return f"session:{session_id}"
    return address


limiter = Limiter(key_func=rate_limit_key)


def get_config() -> AppConfig:
    """Configuration held by the container (loaded once)."""
    return get_container().config


def configured_rate_limit() -> str:
    """security.rate_limit_requests_per_minute as a slowapi limit string."""
    return f"{get_config().security.rate_limit_requests_per_minute}/minute"


def get_ai_service() -> AIServiceUseCase:
    """AI service use case backed by the configured LLM."""
    return get_container().ai_service


def get_sessions() -> SessionsStore:
    """Live facilitation sessions."""
    return get_container().sessions
