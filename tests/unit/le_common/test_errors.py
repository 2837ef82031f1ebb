"""Tests for shared error helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from le_common.errors import (
    CommandError,
    DnsProviderError,
    GatewayError,
    LEError,
    ManifestError,
    error_to_payload,
    wrap_error,
)


pytestmark = pytest.mark.unit_common


def test_error_to_payload_normalizes_context() -> None:
    err = CommandError(
        "boom",
        context={
            "path": Path("/tmp/test"),
            "count": 3,
            "nested": {"value": Path("nested")},
            "items": (Path("a"), "b"),
        },
    )
    payload = error_to_payload(err)
    assert payload["error_type"] == "CommandError"
    assert payload["error"] == "boom"
    assert payload["error_context"]["path"].endswith("test")
    assert payload["error_context"]["count"] == 3
    assert payload["error_context"]["nested"]["value"] == "nested"
    assert payload["error_context"]["items"] == ["a", "b"]


def test_wrap_error_sets_cause() -> None:
    cause = OSError("disk full")
    err = wrap_error(ManifestError, "cannot write", context={"dst": "x"}, cause=cause)
    assert isinstance(err, LEError)
    assert err.__cause__ is cause
    assert err.to_dict() == {
        "type": "ManifestError",
        "message": "cannot write",
        "context": {"dst": "x"},
    }


def test_dns_provider_error_is_a_gateway_error() -> None:
    assert issubclass(DnsProviderError, GatewayError)
