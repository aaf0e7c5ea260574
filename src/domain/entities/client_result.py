"""Result-or-fallback contract for remote AI clients, plus the error taxonomy."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FacilitationError(Exception):
    """Base class for remote-boundary failures."""

    reason: "FallbackReason"


class TransportFailure(FacilitationError):
    """Network error, timeout or non-2xx status from the remote service."""


class MalformedResponse(FacilitationError):
    """Response body is not JSON or does not match the expected schema."""


class ConfigurationError(FacilitationError):
    """Remote service or LLM provider is missing required configuration."""


class FallbackReason(str, Enum):
    """Why a client returned its fallback value instead of a remote result."""

    TRANSPORT_FAILURE = "transport_failure"
    MALFORMED_RESPONSE = "malformed_response"
    CONFIGURATION_ERROR = "configuration_error"
    CIRCUIT_OPEN = "circuit_open"


TransportFailure.reason = FallbackReason.TRANSPORT_FAILURE
MalformedResponse.reason = FallbackReason.MALFORMED_RESPONSE
ConfigurationError.reason = FallbackReason.CONFIGURATION_ERROR


@dataclass(frozen=True)
class ClientResult(Generic[T]):
    """Value returned by a remote client, tagged with its provenance.

    ``fallback_reason`` is None when the value came from the remote service.
    """

    value: T
    fallback_reason: FallbackReason | None = None
    detail: str = ""

    @property
    def is_fallback(self) -> bool:
        return self.fallback_reason is not None

    @classmethod
    def ok(cls, value: T) -> "ClientResult[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: FallbackReason, detail: str = "") -> "ClientResult[T]":
        return cls(value=value, fallback_reason=reason, detail=detail)
