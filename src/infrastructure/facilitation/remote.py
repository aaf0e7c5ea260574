"""Remote AI transport - JSON over HTTP with result-or-fallback conversion."""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from src.domain.entities.client_result import (
    ClientResult,
    ConfigurationError,
    FacilitationError,
    FallbackReason,
    MalformedResponse,
    TransportFailure,
)
from src.domain.ports.config import RemoteAIConfig
from src.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitOpenError,
    get_circuit_breaker,
)

logger = logging.getLogger(__name__)
T = TypeVar("T")

# Lets the AI routes rate-limit each engine separately on loopback.
SESSION_HEADER = "X-Huddle-Session"


class RemoteAIClient:
    """POSTs JSON to the remote AI service and returns the decoded object.

    Raises only FacilitationError subclasses or CircuitOpenError; the
    per-operation clients turn those into fallbacks via ``fetch``.
    """

    def __init__(
        self,
        config: RemoteAIConfig,
        client: httpx.AsyncClient | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None
        self._breaker = breaker or get_circuit_breaker(
            "remote_ai",
            CircuitBreakerConfig(
                failure_threshold=config.failure_threshold,
                recovery_timeout=config.recovery_timeout,
                tracked_exceptions=(TransportFailure,),
            ),
        )

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                headers={"Content-Type": "application/json"},
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def post_json(
        self,
        path: str,
        payload: dict[str, Any],
        session_id: str | None = None,
    ) -> dict[str, Any]:
        """POST ``payload`` to ``<base_url>/<path>`` and return the JSON object.

        Only the send and its status check run inside the breaker; a 429 or an
        undecodable body is reported without counting as an outage.
        """
        if not self._base_url:
            raise ConfigurationError("remote_ai.base_url is not configured")
        headers = {SESSION_HEADER: session_id} if session_id else None
        resp = await self._breaker.call(self._send, path, payload, headers)
        if resp.status_code == 429:
            raise TransportFailure(f"Rate limited by remote AI service: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponse(f"Response is not JSON: {resp.text[:200]}") from e
        if not isinstance(data, dict):
            raise MalformedResponse(f"Expected a JSON object, got {type(data).__name__}")
        return data

    async def _send(
        self,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None,
    ) -> httpx.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            resp = await self._get_client().post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise TransportFailure(f"{type(e).__name__}: {e}") from e
        if resp.status_code >= 400 and resp.status_code != 429:
            raise TransportFailure(f"API error {resp.status_code}: {resp.text[:200]}")
        return resp

    async def fetch(
        self,
        operation: str,
        path: str,
        payload: dict[str, Any],
        parse: Callable[[dict[str, Any]], T],
        fallback: Callable[[], T],
        session_id: str | None = None,
    ) -> ClientResult[T]:
        """Call the service and parse the body, or return ``fallback()`` tagged with the reason."""
        try:
            data = await self.post_json(path, payload, session_id)
            value = parse(data)
        except CircuitOpenError as e:
            logger.info("%s skipped, serving fallback: %s", operation, e)
            return ClientResult.fallback(fallback(), FallbackReason.CIRCUIT_OPEN, str(e))
        except FacilitationError as e:
            logger.warning("%s failed (%s), serving fallback: %s", operation, e.reason.value, e)
            return ClientResult.fallback(fallback(), e.reason, str(e))
        except (KeyError, TypeError, ValueError) as e:
            # pydantic.ValidationError is a ValueError
            logger.warning("%s returned malformed result, serving fallback: %s", operation, e)
            return ClientResult.fallback(fallback(), FallbackReason.MALFORMED_RESPONSE, str(e))
        return ClientResult.ok(value)
