"""TOML configuration loader with env overrides."""

import logging
import os
import tomllib
from pathlib import Path

from src.domain.ports.config import (
    AppConfig,
    FacilitationConfig,
    LLMConfig,
    OllamaConfig,
    OpenAICompatibleConfig,
    RemoteAIConfig,
    SecurityConfig,
    ServerConfig,
)

logger = logging.getLogger(__name__)


def _load_toml(path: Path) -> dict:
    """Load TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _set_int(config: dict, section: str, key: str, env_name: str) -> None:
    raw = os.getenv(env_name)
    if not raw:
        return
    try:
        config.setdefault(section, {})[key] = int(raw)
    except ValueError:
        logger.warning("Invalid %s env value: %r, ignoring", env_name, raw)


def _apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides."""
    if provider := os.getenv("LLM_PROVIDER"):
        config.setdefault("llm", {})["provider"] = provider.strip()
    if model := os.getenv("LLM_MODEL"):
        config.setdefault("llm", {})["model"] = model.strip()
    if host := os.getenv("OLLAMA_HOST"):
        config.setdefault("ollama", {})["host"] = host
    if base_url := os.getenv("OPENAI_BASE_URL"):
        config.setdefault("openai_compatible", {})["base_url"] = base_url
    if key := os.getenv("OPENAI_API_KEY"):
        config.setdefault("openai_compatible", {})["api_key"] = key.strip()
    if url := os.getenv("REMOTE_AI_URL"):
        config.setdefault("remote_ai", {})["base_url"] = url.strip()
    if vibe := os.getenv("FACILITATION_VIBE"):
        config.setdefault("facilitation", {})["vibe"] = vibe.strip().lower()
    _set_int(config, "facilitation", "check_interval_ms", "CHECK_INTERVAL_MS")
    _set_int(config, "server", "port", "PORT")
    _set_int(config, "security", "rate_limit_requests_per_minute", "RATE_LIMIT_PER_MINUTE")
    if level := os.getenv("LOG_LEVEL"):
        config.setdefault("logging", {})["level"] = level.upper()
    if path := os.getenv("LOG_FILE"):
        config.setdefault("logging", {})["file"] = path.strip()
    if origins := os.getenv("CORS_ORIGINS"):
        config.setdefault("security", {})["cors_origins"] = [o.strip() for o in origins.split(",")]
    return config


# Matches stop_after_attempt(2) plus the longest backoff in llm/retry.py.
LLM_ATTEMPTS = 2
LLM_MAX_BACKOFF = 4.0


def _warn_on_short_remote_timeout(config: AppConfig) -> None:
    """Warn when engines would time out before the AI routes can answer."""
    if config.llm.provider == "ollama":
        llm_timeout = config.ollama.timeout
    else:
        llm_timeout = config.openai_compatible.timeout
    worst_case = llm_timeout * LLM_ATTEMPTS + LLM_MAX_BACKOFF
    if config.remote_ai.timeout <= worst_case:
        logger.warning(
            "remote_ai.timeout=%ss does not cover %s LLM worst case (%ss); engines will serve fallbacks for slow answers",
            config.remote_ai.timeout,
            config.llm.provider,
            worst_case,
        )


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Load configuration from TOML files with env overrides.

    Loads default.toml, then development.toml if exists.
    """
    if config_dir is None:
        config_dir = Path(__file__).resolve().parent.parent.parent.parent / "config"

    config: dict = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = _load_toml(default_path)

    dev_path = config_dir / "development.toml"
    if dev_path.exists():
        dev_config = _load_toml(dev_path)
        for key, value in dev_config.items():
            if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                config[key] = {**config[key], **value}
            else:
                config[key] = value

    config = _apply_env_overrides(config)

    logging_raw = config.get("logging") or {}
    app_config = AppConfig(
        server=ServerConfig(**(config.get("server") or {})),
        llm=LLMConfig(**(config.get("llm") or {})),
        ollama=OllamaConfig(**(config.get("ollama") or {})),
        openai_compatible=OpenAICompatibleConfig(**(config.get("openai_compatible") or {})),
        remote_ai=RemoteAIConfig(**(config.get("remote_ai") or {})),
        facilitation=FacilitationConfig(**(config.get("facilitation") or {})),
        security=SecurityConfig(**(config.get("security") or {})),
        log_level=logging_raw.get("level", "INFO"),
        log_file=(logging_raw.get("file") or "").strip(),
        log_rotation_max_mb=int(logging_raw.get("log_rotation_max_mb", 5)),
        log_rotation_backups=int(logging_raw.get("log_rotation_backups", 3)),
    )
    _warn_on_short_remote_timeout(app_config)
    return app_config
