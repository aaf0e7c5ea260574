"""LLM retry wrapper for transient connection failures."""

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.domain.ports.llm import LLMMessage, LLMPort, LLMResponse

_TRANSIENT = (TimeoutError, ConnectionError, httpx.ConnectError, httpx.ReadTimeout)


@retry(
    stop=stop_after_attempt(2),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type(_TRANSIENT),
    reraise=True,
)
async def generate_with_retry(
    llm: LLMPort,
    messages: list[LLMMessage],
    model: str,
    temperature: float = 0.7,
    json_mode: bool = False,
    max_tokens: int | None = None,
) -> LLMResponse:
    """Generate, retrying once on timeout/connection errors."""
    return await llm.generate(
        messages=messages,
        model=model,
        temperature=temperature,
        json_mode=json_mode,
        max_tokens=max_tokens,
    )
