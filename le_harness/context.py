"""Per-run identity and shared mutable state."""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from le_harness.run_state import RunState, RunStateMachine

PORT_BASE = 30000
PORT_SPAN = 2767


def new_run_id(rng: Optional[random.Random] = None) -> str:
    """Return a random non-negative 31-bit integer rendered as text."""
    source = rng or random.SystemRandom()
    return str(source.randrange(0, 2**31))


def allocate_port(now: Optional[datetime] = None) -> int:
    """Derive a NodePort from the wall clock so overlapping runs rarely collide."""
    moment = now or datetime.now()
    return PORT_BASE + moment.second % PORT_SPAN


@dataclass
class RunContext:
    """State shared across the stages of one verification run.

    ``run_id`` and ``allocated_port`` are fixed at construction. The other
    fields are written by the main flow only; the interrupt listener reads
    them during teardown and may observe a value that is not set yet.
    """

    run_id: str = field(default_factory=new_run_id)
    allocated_port: int = field(default_factory=allocate_port)
    image_ref: str = ""
    service_address: Optional[str] = None
    dns_record_id: Optional[str] = None
    state: RunStateMachine = field(default_factory=RunStateMachine)
    _artifacts: set[Path] = field(default_factory=set, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        if not self.run_id:
            raise ValueError("RunContext: 'run_id' must be non-empty")

    @property
    def failed(self) -> bool:
        return self.state.is_aborted()

    @property
    def run_state(self) -> RunState:
        return self.state.state

    def mark_failed(self, reason: str) -> None:
        """Abort the run; later calls keep the first reason."""
        self.state.abort(reason)

    def set_image_ref(self, image_ref: str) -> None:
        self.image_ref = image_ref

    def set_service_address(self, address: str) -> None:
        self.service_address = address

    def set_dns_record_id(self, record_id: str) -> None:
        self.dns_record_id = record_id

    def subdomain(self, domain: str) -> str:
        """Fully-qualified run-scoped host name under ``domain``."""
        return f"{self.run_id}.{domain}"

    def track_artifact(self, path: Path) -> None:
        with self._lock:
            self._artifacts.add(Path(path))

    def artifacts(self) -> list[Path]:
        """Snapshot of generated artifact paths, sorted for stable teardown order."""
        with self._lock:
            return sorted(self._artifacts)
