"""Shared helpers for le-verify."""

from le_common.api import LEError, bound_log_context, configure_logging

__all__ = ["LEError", "bound_log_context", "configure_logging"]
