"""Public API surface for le_common."""

from le_common.errors import (
    CommandError,
    ConfigurationError,
    DnsProviderError,
    GatewayError,
    LEError,
    ManifestError,
    OutputParseError,
    PollTimeoutError,
    VerificationError,
    error_to_payload,
    wrap_error,
)
from le_common.logging import bound_log_context, configure_logging

__all__ = [
    "CommandError",
    "ConfigurationError",
    "DnsProviderError",
    "GatewayError",
    "LEError",
    "ManifestError",
    "OutputParseError",
    "PollTimeoutError",
    "VerificationError",
    "bound_log_context",
    "configure_logging",
    "error_to_payload",
    "wrap_error",
]
