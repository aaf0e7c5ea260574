"""Config Port - interface for configuration access."""

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from src.domain.entities.conversation import Vibe


class LLMConfig(BaseModel):
    """LLM provider selection for the built-in AI service."""

    provider: str = "openai"  # "openai" | "ollama"
    model: str = "gpt-4o-mini"

    model_config = ConfigDict(extra="ignore")


class OllamaConfig(BaseModel):
    """Ollama connection configuration."""

    host: str = "http://localhost:11434"
    timeout: int = 120
    # Optional: None = use model defaults.
    num_ctx: int | None = None
    num_predict: int | None = None


class OpenAICompatibleConfig(BaseModel):
    """OpenAI or any OpenAI-compatible chat completions API."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    timeout: int = 60
    # Optional: max tokens to generate. None = server/model default.
    max_tokens: int | None = None


class RemoteAIConfig(BaseModel):
    """Where facilitation engines send analysis/generation/timing requests."""

    base_url: str = "http://localhost:8000/api/ai"
    # Covers two server-side LLM attempts plus backoff (see config/default.toml).
    timeout: float = 250.0
    # Consecutive failures before the client stops calling and serves fallbacks.
    failure_threshold: int = Field(5, ge=1)
    recovery_timeout: float = Field(30.0, gt=0)


class FacilitationConfig(BaseModel):
    """Defaults for new facilitation sessions. Times in milliseconds."""

    vibe: Vibe = Vibe.MIXED
    enabled: bool = True
    check_interval_ms: int = Field(15_000, gt=0)
    settle_delay_ms: int = Field(1_000, ge=0)
    analysis_refresh_ms: int = Field(30_000, ge=0)


class SecurityConfig(BaseModel):
    """Security settings."""

    rate_limit_requests_per_minute: int = Field(100, ge=1)
    cors_origins: list[str] = ["http://localhost:5173"]


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Full application configuration."""

    server: ServerConfig = ServerConfig()
    llm: LLMConfig = LLMConfig()
    ollama: OllamaConfig = OllamaConfig()
    openai_compatible: OpenAICompatibleConfig = OpenAICompatibleConfig()
    remote_ai: RemoteAIConfig = RemoteAIConfig()
    facilitation: FacilitationConfig = FacilitationConfig()
    security: SecurityConfig = SecurityConfig()
    log_level: str = "INFO"
    # Log file: path relative to cwd or absolute. Empty = only stdout.
    log_file: str = ""
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3


class ConfigPort(Protocol):
    """Interface for configuration providers."""

    def get_config(self) -> AppConfig:
        """Get the full application configuration."""
        ...
