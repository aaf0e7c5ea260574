"""Ollama adapter - implements LLMPort with the ollama client."""

import logging

import httpx
from ollama import AsyncClient

from src.domain.ports.config import OllamaConfig
from src.domain.ports.llm import LLMMessage, LLMResponse

logger = logging.getLogger(__name__)

# Connect timeout: fail fast when the host is down
DEFAULT_CONNECT_TIMEOUT = 5.0


class OllamaAdapter:
    """Ollama implementation of LLMPort."""

    def __init__(self, config: OllamaConfig) -> None:
        self._config = config
        # httpx needs all four timeouts set explicitly
        read_timeout = float(config.timeout) if config.timeout else 120.0
        timeout = httpx.Timeout(
            connect=DEFAULT_CONNECT_TIMEOUT,
            read=read_timeout,
            write=read_timeout,
            pool=30.0,
        )
        self._client = AsyncClient(host=config.host, timeout=timeout)
        self._available: bool | None = None

    def _ollama_options(self, temperature: float, max_tokens: int | None) -> dict:
        """Build options dict: temperature + optional num_ctx, num_predict."""
        opts: dict = {"temperature": temperature}
        if self._config.num_ctx is not None:
            opts["num_ctx"] = self._config.num_ctx
        num_predict = max_tokens if max_tokens is not None else self._config.num_predict
        if num_predict is not None:
            opts["num_predict"] = num_predict
        return opts

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
        json_mode: bool = False,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a single response."""
        model = model or "llama3.1"
        kwargs: dict = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "options": self._ollama_options(temperature, max_tokens),
        }
        if json_mode:
            kwargs["format"] = "json"
        response = await self._client.chat(**kwargs)
        content = response.message.content if response.message else ""
        return LLMResponse(content=content or "", model=response.model or model, done=True)

    async def is_available(self) -> bool:
        """Check if Ollama server is available. Fail-fast, no stale cache."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._config.host.rstrip('/')}/api/tags")
                if resp.status_code == 200:
                    self._available = True
                    return True
        except Exception as e:
            logger.debug("Ollama availability check failed: %s", e)
        self._available = False
        return False
