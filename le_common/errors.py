"""Shared error taxonomy for le-verify."""

from __future__ import annotations

from typing import Any, Mapping, TypeVar


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class LEError(Exception):
    """Base error type for hard failures raised by the harness."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ConfigurationError(LEError):
    """Failure due to invalid or missing configuration."""


class CommandError(LEError):
    """An external command exited non-zero or could not be started."""


class OutputParseError(LEError):
    """Structured command output could not be decoded."""


class ManifestError(LEError):
    """The deployment manifest could not be read or written."""


class GatewayError(LEError):
    """Network-level failure talking to an HTTP endpoint."""


class DnsProviderError(GatewayError):
    """The DNS provider rejected a request or answered with an unexpected body."""


class PollTimeoutError(LEError):
    """A blocking poll did not observe its condition before the deadline."""


class VerificationError(LEError):
    """An observed external state did not match the expected outcome."""


T = TypeVar("T", bound=LEError)


def wrap_error(
    error_cls: type[T],
    message: str,
    *,
    context: Mapping[str, Any] | None = None,
    cause: Exception | None = None,
) -> T:
    """Create a typed LEError with optional context and cause."""
    return error_cls(message, context=context, cause=cause)


def error_to_payload(error: LEError) -> dict[str, Any]:
    """Convert an LEError to a stage-record payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
