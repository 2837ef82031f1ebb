"""Scripted stand-ins for the harness's external collaborators."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from le_common.errors import DnsProviderError, GatewayError
from le_harness.executor import CommandExecutor, CommandResult
from le_harness.gateway import HealthResponse


def ok(stdout: str = "") -> CommandResult:
    return CommandResult((), stdout, "", 0)


def fail(stderr: str = "boom", returncode: int = 1) -> CommandResult:
    return CommandResult((), "", stderr, returncode)


def as_json(payload: Dict[str, Any]) -> CommandResult:
    return ok(json.dumps(payload))


def service_payload(ip: str | None) -> Dict[str, Any]:
    ingress = [{"ip": ip}] if ip else []
    return {"kind": "Service", "status": {"loadBalancer": {"ingress": ingress}}}


def job_payload(succeeded: int | None = None, failed: int | None = None) -> Dict[str, Any]:
    status: Dict[str, Any] = {}
    if succeeded is not None:
        status["succeeded"] = succeeded
    if failed is not None:
        status["failed"] = failed
    return {"kind": "Job", "status": status}


def secret_payload(data: Dict[str, str]) -> Dict[str, Any]:
    return {"kind": "Secret", "data": data}


@dataclass
class _Rule:
    tokens: tuple[str, ...]
    results: List[CommandResult]

    def matches(self, argv: Sequence[str]) -> bool:
        return all(token in argv for token in self.tokens)

    def next_result(self) -> CommandResult:
        # The last scripted result repeats once the queue is drained.
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class FakeExecutor(CommandExecutor):
    """Answer commands from scripted rules; unmatched commands succeed empty."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: List[tuple[str, ...]] = []
        self._rules: List[_Rule] = []

    def on(self, *tokens: str, results: Sequence[CommandResult]) -> "FakeExecutor":
        self._rules.append(_Rule(tuple(tokens), list(results)))
        return self

    def run(self, argv: Sequence[str]) -> CommandResult:
        args = tuple(str(arg) for arg in argv)
        self.calls.append(args)
        for rule in self._rules:
            if rule.matches(args):
                scripted = rule.next_result()
                return CommandResult(args, scripted.stdout, scripted.stderr, scripted.returncode)
        return CommandResult(args, "", "", 0)

    def calls_with(self, *tokens: str) -> List[tuple[str, ...]]:
        return [call for call in self.calls if all(token in call for token in tokens)]


@dataclass
class FakeDnsClient:
    record_id: str = "abc123"
    create_error: Optional[Exception] = None
    created: List[tuple[str, str]] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    live_records: set[str] = field(default_factory=set)

    def create_record(self, name: str, address: str) -> str:
        self.created.append((name, address))
        if self.create_error is not None:
            raise self.create_error
        self.live_records.add(self.record_id)
        return self.record_id

    def delete_record(self, record_id: str) -> bool:
        self.deleted.append(record_id)
        self.live_records.discard(record_id)
        return True


class ScriptedResolver:
    """Returns scripted address lists; ``None`` entries raise a lookup error."""

    def __init__(self, answers: Sequence[Optional[List[str]]]) -> None:
        self._answers = list(answers)
        self.calls = 0

    def resolve(self, hostname: str) -> List[str]:
        self.calls += 1
        answer = self._answers.pop(0) if len(self._answers) > 1 else self._answers[0]
        if answer is None:
            raise GatewayError(f"no such host {hostname}")
        return list(answer)


class ScriptedHealthProbe:
    """Returns scripted responses; ``None`` entries raise a connection error."""

    def __init__(self, responses: Sequence[Optional[HealthResponse]]) -> None:
        self._responses = list(responses)
        self.urls: List[str] = []

    def check(self, url: str) -> HealthResponse:
        self.urls.append(url)
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if response is None:
            raise GatewayError(f"connection refused: {url}")
        return response


def dns_error(message: str = "status 403") -> DnsProviderError:
    return DnsProviderError(message)
