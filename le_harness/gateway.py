"""HTTP access to the DNS provider, the health endpoint and host resolution."""

from __future__ import annotations

import http.client
import json
import logging
import socket
from dataclasses import dataclass
from typing import Any, Mapping
from urllib import error, parse, request

from le_common.errors import DnsProviderError, GatewayError

logger = logging.getLogger(__name__)

DEFAULT_DNS_API_URL = "https://api.cloudflare.com/client/v4"


def _validate_http_url(url: str, label: str) -> str:
    parsed = parse.urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"{label} must be an http(s) URL, got: {url}")
    return url


def _parse_json(body: str) -> dict[str, Any] | None:
    if not body:
        return None
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _error_body(exc: error.HTTPError) -> str:
    if not exc.fp:
        return ""
    try:
        return exc.read().decode("utf-8", "replace")
    except (OSError, http.client.HTTPException):
        return ""


@dataclass
class DnsProviderClient:
    """Minimal Cloudflare-style DNS records client."""

    zone_id: str
    auth_email: str
    auth_key: str
    api_url: str = DEFAULT_DNS_API_URL
    timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        self.api_url = _validate_http_url(self.api_url.rstrip("/"), "DNS api_url")

    def _records_url(self, record_id: str | None = None) -> str:
        zone = parse.quote(self.zone_id, safe="")
        url = f"{self.api_url}/zones/{zone}/dns_records"
        if record_id is not None:
            url = f"{url}/{parse.quote(record_id, safe='')}"
        return url

    def _headers(self) -> dict[str, str]:
        return {
            "X-Auth-Email": self.auth_email,
            "X-Auth-Key": self.auth_key,
            "Content-Type": "application/json",
        }

    def create_record(self, name: str, address: str) -> str:
        """Create an A record and return its identifier.

        Only HTTP 200 with a non-empty ``result.id`` counts as success; every
        other outcome raises DnsProviderError and is not retried.
        """
        payload = {"type": "A", "name": name, "content": address}
        context = {"zone_id": self.zone_id, "name": name, "content": address}
        status, body = self._request("POST", self._records_url(), payload=payload)
        if status != 200:
            raise DnsProviderError(
                f"DNS record creation returned status {status}",
                context={**context, "status": status, "body": body},
            )
        data = _parse_json(body)
        if data is None:
            raise DnsProviderError(
                "DNS record creation returned a non-JSON body",
                context={**context, "body": body},
            )
        result = data.get("result")
        record_id = result.get("id") if isinstance(result, Mapping) else None
        if not isinstance(record_id, str) or not record_id:
            raise DnsProviderError(
                "DNS record creation response has no result id",
                context={**context, "body": body},
            )
        logger.info("Created DNS record %s for %s -> %s", record_id, name, address)
        return record_id

    def delete_record(self, record_id: str) -> bool:
        """Delete a record; 200 and 404 both count as deleted. Never raises."""
        try:
            status, body = self._request("DELETE", self._records_url(record_id))
        except GatewayError as exc:
            logger.warning("Failed to delete DNS record %s: %s", record_id, exc)
            return False
        logger.info("Delete DNS record %s: status %s", record_id, status)
        if status in {200, 404}:
            return True
        logger.warning("Unexpected status deleting DNS record %s: %s %s", record_id, status, body)
        return False

    def _request(
        self,
        method: str,
        url: str,
        payload: Mapping[str, Any] | None = None,
    ) -> tuple[int, str]:
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = request.Request(url, data=data, headers=self._headers(), method=method)
        try:
            with request.urlopen(req, timeout=self.timeout_seconds) as resp:  # nosec B310
                return resp.status, resp.read().decode("utf-8")
        except error.HTTPError as exc:
            return exc.code, _error_body(exc)
        except (error.URLError, OSError, http.client.HTTPException, UnicodeDecodeError) as exc:
            raise DnsProviderError(
                f"DNS provider request failed: {exc}",
                context={"method": method, "url": url},
                cause=exc,
            ) from exc


@dataclass(frozen=True)
class HealthResponse:
    status: int
    body: str


@dataclass
class HealthProbe:
    """Unauthenticated GET against the deployed service."""

    timeout_seconds: float = 10.0

    def check(self, url: str) -> HealthResponse:
        url = _validate_http_url(url, "health url")
        req = request.Request(url, method="GET")
        try:
            with request.urlopen(req, timeout=self.timeout_seconds) as resp:  # nosec B310
                return HealthResponse(resp.status, resp.read().decode("utf-8", "replace"))
        except error.HTTPError as exc:
            return HealthResponse(exc.code, _error_body(exc))
        except (error.URLError, OSError, http.client.HTTPException) as exc:
            raise GatewayError(
                f"Health request to {url} failed: {exc}",
                context={"url": url},
                cause=exc,
            ) from exc


class HostResolver:
    """Resolve a host name to its IPv4 addresses through the system resolver."""

    def resolve(self, hostname: str) -> list[str]:
        try:
            infos = socket.getaddrinfo(hostname, None, socket.AF_INET, socket.SOCK_STREAM)
        except (socket.gaierror, OSError) as exc:
            raise GatewayError(
                f"Could not resolve {hostname}: {exc}",
                context={"hostname": hostname},
                cause=exc,
            ) from exc
        addresses: list[str] = []
        for info in infos:
            address = str(info[4][0])
            if address not in addresses:
                addresses.append(address)
        return addresses
