"""Circuit Breaker - stop hammering a remote AI service that keeps failing.

States:
- CLOSED: calls pass through
- OPEN: calls are refused until ``recovery_timeout`` elapses
- HALF_OPEN: trial calls decide whether to close again
"""

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")

_registry_lock = threading.Lock()


class CircuitState(Enum):
    """Circuit Breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    """Circuit Breaker thresholds."""

    failure_threshold: int = 5
    recovery_timeout: float = 30.0  # seconds
    success_threshold: int = 1

    # Only these exceptions count as failures
    tracked_exceptions: tuple[type[BaseException], ...] = (Exception,)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.recovery_timeout <= 0:
            raise ValueError("recovery_timeout must be > 0")
        if self.success_threshold < 1:
            raise ValueError("success_threshold must be >= 1")

    def is_tracked(self, exc: BaseException) -> bool:
        """Cancellation and interpreter exits never trip the breaker."""
        if isinstance(exc, (SystemExit, KeyboardInterrupt, GeneratorExit, asyncio.CancelledError)):
            return False
        return isinstance(exc, self.tracked_exceptions)


class CircuitOpenError(Exception):
    """Raised instead of calling through while the circuit is OPEN."""


@dataclass
class CircuitBreaker:
    """Circuit Breaker around an async callable.

    Usage:
        breaker = CircuitBreaker("remote_ai")

        try:
            result = await breaker.call(client.post_json, path, payload)
        except CircuitOpenError:
            ...  # serve the fallback
    """

    name: str
    config: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    clock: Callable[[], float] = time.monotonic

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _opened_at: float = field(default=0.0, init=False)

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state == CircuitState.CLOSED

    def retry_in(self) -> float:
        """Seconds until an OPEN circuit allows a trial call."""
        if self._state != CircuitState.OPEN:
            return 0.0
        return max(0.0, self.config.recovery_timeout - (self.clock() - self._opened_at))

    def _before_call(self) -> None:
        if self._state != CircuitState.OPEN:
            return
        if self.retry_in() > 0:
            raise CircuitOpenError(f"Circuit '{self.name}' is OPEN. Retry in {self.retry_in():.1f}s")
        self._state = CircuitState.HALF_OPEN
        self._success_count = 0
        logger.debug("Circuit '%s' transitioned to HALF_OPEN", self.name)

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Run ``func`` through the breaker.

        Raises:
            CircuitOpenError: If the circuit is OPEN.

        """
        self._before_call()
        try:
            result = await func(*args, **kwargs)
        except BaseException as e:
            if self.config.is_tracked(e):
                self._on_failure()
            raise
        self._on_success()
        return result

    def _on_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._success_count += 1
            if self._success_count >= self.config.success_threshold:
                self._state = CircuitState.CLOSED
                self._failure_count = 0
                self._success_count = 0
                logger.info("Circuit '%s' transitioned to CLOSED", self.name)
        elif self._state == CircuitState.CLOSED:
            self._failure_count = 0

    def _on_failure(self) -> None:
        self._failure_count += 1
        if self._state == CircuitState.HALF_OPEN or self._failure_count >= self.config.failure_threshold:
            if self._state != CircuitState.OPEN:
                logger.warning(
                    "Circuit '%s' transitioned to OPEN after %d failures",
                    self.name,
                    self._failure_count,
                )
            self._state = CircuitState.OPEN
            self._opened_at = self.clock()

    def reset(self) -> None:
        """Back to CLOSED with zeroed counters."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._opened_at = 0.0

    def get_stats(self) -> dict:
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "retry_in": round(self.retry_in(), 1),
        }


_breakers: dict[str, CircuitBreaker] = {}


def get_circuit_breaker(
    name: str,
    config: CircuitBreakerConfig | None = None,
) -> CircuitBreaker:
    """Get or create the breaker registered under ``name``."""
    if name in _breakers:
        return _breakers[name]

    with _registry_lock:
        if name not in _breakers:
            _breakers[name] = CircuitBreaker(
                name=name,
                config=config or CircuitBreakerConfig(),
            )
        return _breakers[name]


def get_all_breakers() -> dict[str, dict]:
    """Stats of every registered breaker."""
    with _registry_lock:
        return {name: b.get_stats() for name, b in _breakers.items()}


def reset_all_breakers() -> None:
    """Reset every registered breaker (tests)."""
    with _registry_lock:
        for breaker in _breakers.values():
            breaker.reset()
