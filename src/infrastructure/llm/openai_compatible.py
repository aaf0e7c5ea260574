"""OpenAI-compatible adapter - OpenAI, LM Studio, vLLM, LocalAI."""

import logging

import httpx

from src.domain.entities.client_result import ConfigurationError
from src.domain.ports.config import OpenAICompatibleConfig
from src.domain.ports.llm import LLMMessage, LLMResponse

logger = logging.getLogger(__name__)


class OpenAICompatibleAdapter:
    """Implements LLMPort via /v1/chat/completions."""

    def __init__(self, config: OpenAICompatibleConfig) -> None:
        """Initialize with OpenAI-compatible config."""
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json"}
        if config.api_key:
            self._headers["Authorization"] = f"Bearer {config.api_key}"
        self._client: httpx.AsyncClient | None = None

    @property
    def requires_api_key(self) -> bool:
        """Hosted OpenAI needs a key; local servers usually do not."""
        return "api.openai.com" in self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                headers=self._headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client (call during app shutdown)."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _chat_body(
        self,
        model: str,
        messages: list[LLMMessage],
        temperature: float,
        json_mode: bool,
        max_tokens: int | None,
    ) -> dict:
        """Build request body; explicit max_tokens wins over config."""
        body: dict = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "stream": False,
        }
        limit = max_tokens if max_tokens is not None else self._config.max_tokens
        if limit is not None:
            body["max_tokens"] = limit
        if json_mode:
            body["response_format"] = {"type": "json_object"}
        return body

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
        json_mode: bool = False,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a single response (non-streaming)."""
        if self.requires_api_key and not self._config.api_key:
            raise ConfigurationError("OpenAI API key not configured")
        model = model or "default"
        body = self._chat_body(model, messages, temperature, json_mode, max_tokens)
        client = self._get_client()
        resp = await client.post(
            f"{self._base_url}/chat/completions",
            json=body,
        )
        if resp.status_code >= 400:
            logger.error(
                "LLM API error %s: %s",
                resp.status_code,
                resp.text[:500],
                extra={"model": model},
            )
        resp.raise_for_status()
        data = resp.json()
        choice = (data.get("choices") or [{}])[0]
        content = (choice.get("message") or {}).get("content") or ""
        return LLMResponse(content=content, model=data.get("model", model), done=True)

    async def is_available(self) -> bool:
        """Check if the API answers /models."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._base_url}/models", headers=self._headers)
                return resp.status_code == 200
        except (httpx.ConnectTimeout, httpx.ConnectError, httpx.ReadTimeout, OSError) as e:
            logger.debug("OpenAI-compatible availability check failed (connection): %s", e)
            return False
        except httpx.HTTPError as e:
            logger.debug("OpenAI-compatible availability check failed (HTTP): %s", e)
            return False
