"""Read-only cluster inspection decoded into typed snapshots."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from le_common.errors import OutputParseError
from le_harness.executor import CommandExecutor

logger = logging.getLogger(__name__)


class _Snapshot(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _IngressEntry(_Snapshot):
    ip: str = ""


class _LoadBalancerStatus(_Snapshot):
    ingress: List[_IngressEntry] = Field(default_factory=list)


class _ServiceStatus(_Snapshot):
    load_balancer: _LoadBalancerStatus = Field(
        default_factory=_LoadBalancerStatus, alias="loadBalancer"
    )


class _JobStatus(_Snapshot):
    succeeded: int = 0
    failed: int = 0


class ServiceSnapshot(_Snapshot):
    """Service as seen by ``kubectl get svc -o json``."""

    status: _ServiceStatus = Field(default_factory=_ServiceStatus)

    @property
    def address(self) -> Optional[str]:
        ingress = self.status.load_balancer.ingress
        if not ingress or not ingress[0].ip:
            return None
        return ingress[0].ip

    @property
    def ready(self) -> bool:
        return self.address is not None


class JobSnapshot(_Snapshot):
    """Job completion counters; absent counters decode as zero."""

    status: _JobStatus = Field(default_factory=_JobStatus)

    @property
    def succeeded(self) -> int:
        return self.status.succeeded

    @property
    def failed(self) -> int:
        return self.status.failed


class SecretSnapshot(_Snapshot):
    """Secret keys mapped to their (still encoded) values."""

    data: Dict[str, str] = Field(default_factory=dict)

    def value(self, key: str) -> str:
        return self.data.get(key) or ""

    def has_value(self, key: str) -> bool:
        return bool(self.value(key))


S = TypeVar("S", bound=BaseModel)


class ResourceInspector:
    """Fetch cluster objects as JSON and decode them into snapshots.

    Non-zero exits raise CommandError and undecodable output raises
    OutputParseError; polling callers translate both into "not ready".
    """

    def __init__(self, executor: CommandExecutor, kubectl: str = "kubectl") -> None:
        self.executor = executor
        self.kubectl = kubectl

    def get_argv(self, namespace: str, kind: str, name: str) -> list[str]:
        return [self.kubectl, "--namespace", namespace, "get", kind, name, "-o", "json"]

    def fetch_structured(self, argv: Sequence[str], snapshot_cls: Type[S]) -> S:
        result = self.executor.check(argv)
        return decode_snapshot(result.stdout, snapshot_cls)

    def service(self, namespace: str, name: str) -> ServiceSnapshot:
        return self.fetch_structured(self.get_argv(namespace, "svc", name), ServiceSnapshot)

    def job(self, namespace: str, name: str) -> JobSnapshot:
        return self.fetch_structured(self.get_argv(namespace, "job", name), JobSnapshot)

    def secret(self, namespace: str, name: str) -> SecretSnapshot:
        return self.fetch_structured(self.get_argv(namespace, "secret", name), SecretSnapshot)


def decode_snapshot(raw: str, snapshot_cls: Type[S]) -> S:
    """Decode kubectl JSON output into ``snapshot_cls``."""
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise OutputParseError(
            f"Invalid JSON for {snapshot_cls.__name__}",
            context={"snippet": raw[:200]},
            cause=exc,
        ) from exc
    if not isinstance(payload, dict):
        raise OutputParseError(
            f"Expected a JSON object for {snapshot_cls.__name__}",
            context={"snippet": raw[:200]},
        )
    try:
        return snapshot_cls.model_validate(payload)
    except ValidationError as exc:
        raise OutputParseError(
            f"Unexpected shape for {snapshot_cls.__name__}",
            context={"errors": exc.errors(include_url=False)},
            cause=exc,
        ) from exc
