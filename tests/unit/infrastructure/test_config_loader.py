"""Tests for TOML config loader."""

import logging
import os
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.domain.entities.conversation import Vibe
from src.infrastructure.config.toml_loader import _apply_env_overrides, load_config


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_config(self):
        """Loads the shipped default.toml."""
        config = load_config()

        assert config.remote_ai.base_url.endswith("/api/ai")
        assert config.facilitation.check_interval_ms == 15000
        assert config.facilitation.settle_delay_ms == 1000
        assert config.facilitation.analysis_refresh_ms == 30000
        assert config.security.rate_limit_requests_per_minute == 100

    def test_loads_from_custom_dir(self):
        """Loads config from custom directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text("""
[llm]
provider = "ollama"
model = "llama3.1"

[facilitation]
vibe = "deep"
check_interval_ms = 5000

[server]
port = 9999
""")
            config = load_config(Path(tmpdir))

            assert config.llm.provider == "ollama"
            assert config.facilitation.vibe == "deep"
            assert config.facilitation.check_interval_ms == 5000
            assert config.server.port == 9999

    def test_merges_development_config(self):
        """Merges development.toml over default.toml."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text("""
[remote_ai]
base_url = "http://a/api/ai"
timeout = 10.0
""")
            (Path(tmpdir) / "development.toml").write_text("""
[remote_ai]
base_url = "http://b/api/ai"
""")
            config = load_config(Path(tmpdir))

            assert config.remote_ai.base_url == "http://b/api/ai"
            assert config.remote_ai.timeout == 10.0

    def test_handles_missing_files(self):
        """Empty directory falls back to model defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config = load_config(Path(tmpdir))

            assert config.llm.model == "gpt-4o-mini"
            assert config.facilitation.vibe == "mixed"

    def test_zero_check_interval_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text("[facilitation]\ncheck_interval_ms = 0\n")
            with pytest.raises(ValidationError):
                load_config(Path(tmpdir))

    def test_logging_section(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text('[logging]\nlevel = "DEBUG"\nfile = " logs/huddle.log "\n')
            config = load_config(Path(tmpdir))
            assert config.log_level == "DEBUG"
            assert config.log_file == "logs/huddle.log"


    def test_unknown_vibe_rejected(self):
        """A vibe outside fun/thoughtful/deep/mixed fails at load time."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text('[facilitation]\nvibe = "spicy"\n')
            with pytest.raises(ValidationError):
                load_config(Path(tmpdir))

    def test_vibe_loaded_as_enum(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text('[facilitation]\nvibe = "fun"\n')
            config = load_config(Path(tmpdir))
            assert config.facilitation.vibe is Vibe.FUN

    def test_zero_rate_limit_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text("[security]\nrate_limit_requests_per_minute = 0\n")
            with pytest.raises(ValidationError):
                load_config(Path(tmpdir))


class TestRemoteTimeout:
    """remote_ai.timeout against the server-side LLM worst case."""

    def test_default_outlasts_both_providers(self, caplog):
        config = load_config()
        for provider_timeout in (config.openai_compatible.timeout, config.ollama.timeout):
            assert config.remote_ai.timeout > provider_timeout * 2
        assert "remote_ai.timeout" not in caplog.text

    @pytest.mark.parametrize(
        "toml,warned",
        [
            ('[openai_compatible]\ntimeout = 60\n[remote_ai]\ntimeout = 30.0\n', True),
            ('[openai_compatible]\ntimeout = 60\n[remote_ai]\ntimeout = 124.0\n', True),
            ('[openai_compatible]\ntimeout = 60\n[remote_ai]\ntimeout = 130.0\n', False),
            ('[llm]\nprovider = "ollama"\n[ollama]\ntimeout = 120\n[remote_ai]\ntimeout = 150.0\n', True),
            ('[llm]\nprovider = "ollama"\n[ollama]\ntimeout = 120\n[remote_ai]\ntimeout = 250.0\n', False),
        ],
    )
    def test_warns_when_shorter_than_llm_worst_case(self, caplog, toml, warned):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "default.toml").write_text(toml)
            with caplog.at_level(logging.WARNING, logger="src.infrastructure.config.toml_loader"):
                load_config(Path(tmpdir))
        assert ("remote_ai.timeout" in caplog.text) is warned


class TestApplyEnvOverrides:
    """Tests for _apply_env_overrides function."""

    @pytest.mark.parametrize(
        "env,value,section,key,expected",
        [
            ("LLM_PROVIDER", "ollama", "llm", "provider", "ollama"),
            ("LLM_MODEL", " gpt-4o ", "llm", "model", "gpt-4o"),
            ("OLLAMA_HOST", "http://custom:11434", "ollama", "host", "http://custom:11434"),
            ("OPENAI_API_KEY", "sk-test", "openai_compatible", "api_key", "sk-test"),
            ("REMOTE_AI_URL", "http://ai.internal/api/ai", "remote_ai", "base_url", "http://ai.internal/api/ai"),
            ("FACILITATION_VIBE", "Deep", "facilitation", "vibe", "deep"),
            ("CHECK_INTERVAL_MS", "20000", "facilitation", "check_interval_ms", 20000),
            ("PORT", "9000", "server", "port", 9000),
            ("RATE_LIMIT_PER_MINUTE", "200", "security", "rate_limit_requests_per_minute", 200),
            ("LOG_LEVEL", "debug", "logging", "level", "DEBUG"),
        ],
    )
    def test_override(self, monkeypatch, env, value, section, key, expected):
        monkeypatch.setenv(env, value)
        result = _apply_env_overrides({})
        assert result[section][key] == expected

    def test_invalid_port_ignored(self):
        """Invalid PORT value is ignored."""
        config = {"server": {"port": 8000}}
        os.environ["PORT"] = "not_a_number"

        try:
            result = _apply_env_overrides(config)
            assert result["server"]["port"] == 8000
        finally:
            del os.environ["PORT"]

    def test_cors_origins_override(self):
        """CORS_ORIGINS env var overrides config."""
        config = {}
        os.environ["CORS_ORIGINS"] = "http://a.com, http://b.com"

        try:
            result = _apply_env_overrides(config)
            assert result["security"]["cors_origins"] == ["http://a.com", "http://b.com"]
        finally:
            del os.environ["CORS_ORIGINS"]
