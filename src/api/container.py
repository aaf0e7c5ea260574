"""Dependency Injection Container - centralized service management."""

from functools import cached_property
from typing import TYPE_CHECKING

from src.api.store import SessionsStore
from src.domain.ports.config import AppConfig
from src.domain.ports.facilitation import TranscriptProvider
from src.domain.ports.llm import LLMPort
from src.infrastructure.config import load_config

if TYPE_CHECKING:
    from src.application.ai_service.use_case import AIServiceUseCase
    from src.application.facilitation.engine import FacilitationEngine
    from src.infrastructure.facilitation import RemoteAIClient


class Container:
    """Dependency Injection Container with lazy initialization.

    All dependencies are created on first access and cached.

    Usage:
        container = Container()
        session = container.sessions.create(vibe="fun")
    """

    def __init__(self, config: AppConfig | None = None):
        """Initialize container with optional config override."""
        self._config_override = config

    @cached_property
    def config(self) -> AppConfig:
        """Application configuration."""
        if self._config_override:
            return self._config_override
        return load_config()

    @cached_property
    def llm(self) -> LLMPort:
        """LLM adapter based on config provider."""
        if self.config.llm.provider == "ollama":
            from src.infrastructure.llm.ollama import OllamaAdapter
            return OllamaAdapter(self.config.ollama)

        from src.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter
        return OpenAICompatibleAdapter(self.config.openai_compatible)

    @cached_property
    def ai_service(self) -> "AIServiceUseCase":
        """Server side of the analysis/question/timing/summary contracts."""
        from src.application.ai_service.use_case import AIServiceUseCase
        return AIServiceUseCase(llm=self.llm, model=self.config.llm.model)

    @cached_property
    def remote_ai(self) -> "RemoteAIClient":
        """Shared HTTP transport to the remote AI service."""
        from src.infrastructure.facilitation import RemoteAIClient
        return RemoteAIClient(self.config.remote_ai)

    def build_engine(
        self,
        session_id: str,
        get_transcript: TranscriptProvider,
        vibe: str | None = None,
        check_interval_ms: int | None = None,
    ) -> "FacilitationEngine":
        """New engine with its own clients over the shared transport, defaults from config."""
        from src.application.facilitation.engine import FacilitationEngine
        from src.infrastructure.facilitation import (
            AnalysisClient,
            QuestionClient,
            SummaryClient,
            TimingOracle,
        )

        f = self.config.facilitation
        return FacilitationEngine(
            analysis=AnalysisClient(self.remote_ai, session_id=session_id),
            questions=QuestionClient(self.remote_ai, session_id=session_id),
            timing=TimingOracle(self.remote_ai, session_id=session_id),
            summaries=SummaryClient(self.remote_ai, session_id=session_id),
            get_transcript=get_transcript,
            vibe=vibe or f.vibe.value,
            check_interval_ms=check_interval_ms or f.check_interval_ms,
            settle_delay_ms=f.settle_delay_ms,
            analysis_refresh_ms=f.analysis_refresh_ms,
            name=session_id,
        )

    @cached_property
    def sessions(self) -> SessionsStore:
        """Live facilitation sessions."""
        return SessionsStore(engine_factory=self.build_engine)

    async def aclose(self) -> None:
        """Close sessions and HTTP clients that were created."""
        if "sessions" in self.__dict__:
            await self.sessions.close_all()
        if "remote_ai" in self.__dict__:
            await self.remote_ai.close()
        if "llm" in self.__dict__ and hasattr(self.llm, "close"):
            await self.llm.close()

    def reset(self) -> None:
        """Reset all cached instances (useful for testing)."""
        for attr in list(self.__dict__.keys()):
            if not attr.startswith("_"):
                delattr(self, attr)


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get or create global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container) -> None:
    """Install a prepared container (tests)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    if _container:
        _container.reset()
    _container = None
