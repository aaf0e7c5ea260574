"""Application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.container import get_container
from src.api.dependencies import configured_rate_limit, limiter
from src.api.routes.ai import router as ai_router
from src.api.routes.sessions import router as sessions_router
from src.infrastructure.resilience import get_all_breakers
from src.shared.logging import setup_logging

log = structlog.get_logger()


def _apply_logging_config(container):
    """Apply logging from container config (stdout + optional file)."""
    c = container.config
    setup_logging(
        level=c.log_level,
        file_path=c.log_file or "",
        rotation_max_mb=c.log_rotation_max_mb,
        rotation_backups=c.log_rotation_backups,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: logging. Shutdown: close sessions (timers) and HTTP clients."""
    container = get_container()
    _apply_logging_config(container)
    log.info(
        "startup_complete",
        llm_provider=container.config.llm.provider,
        llm_model=container.config.llm.model,
        remote_ai=container.config.remote_ai.base_url,
    )
    yield
    log.info("shutdown_begin")
    try:
        await container.aclose()
    except Exception:  # noqa: BLE001
        log.warning("shutdown_close_error", exc_info=True)
    log.info("shutdown_complete")


app = FastAPI(
    title="Huddle",
    version="0.1.0",
    description="Conversation facilitation: timely, domain-aware follow-up questions",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
container = get_container()
app.add_middleware(
    CORSMiddleware,
    allow_origins=container.config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ai_router)
app.include_router(sessions_router)


@app.get("/health")
@limiter.limit(configured_rate_limit)
async def health(request: Request) -> dict:
    """Health check with LLM availability and remote-call breaker state."""
    container = get_container()
    llm_available = await container.llm.is_available()
    return {
        "status": "ok",
        "service": "huddle",
        "llm_provider": container.config.llm.provider,
        "llm_available": llm_available,
        "sessions": len(container.sessions),
        "breakers": get_all_breakers(),
    }
