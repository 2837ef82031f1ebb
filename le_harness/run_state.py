"""Run and stage state machine primitives."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Optional


class RunState(str, Enum):
    """Global lifecycle of a verification run."""

    INITIALIZING = "initializing"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ABORTED = "aborted"


class StageStatus(str, Enum):
    """Lifecycle of a single stage."""

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


_TERMINAL_STATES = {RunState.COMPLETED, RunState.ABORTED}

_ALLOWED_TRANSITIONS = {
    RunState.INITIALIZING: {RunState.EXECUTING, RunState.ABORTED},
    RunState.EXECUTING: {RunState.COMPLETED, RunState.ABORTED},
    RunState.COMPLETED: set(),
    RunState.ABORTED: set(),
}


class RunStateMachine:
    """Thread-safe run state tracker.

    ABORTED can be entered from any non-terminal state and is never left,
    which makes the failure flag derived from it monotonic.
    """

    def __init__(self) -> None:
        self._state = RunState.INITIALIZING
        self._lock = threading.RLock()
        self._reason: Optional[str] = None
        self._callbacks: list[Callable[[RunState, Optional[str]], None]] = []

    @property
    def state(self) -> RunState:
        with self._lock:
            return self._state

    @property
    def reason(self) -> Optional[str]:
        with self._lock:
            return self._reason

    def is_terminal(self) -> bool:
        with self._lock:
            return self._state in _TERMINAL_STATES

    def is_aborted(self) -> bool:
        with self._lock:
            return self._state == RunState.ABORTED

    def register_callback(
        self, callback: Callable[[RunState, Optional[str]], None]
    ) -> None:
        """Register a callback invoked on every transition."""
        self._callbacks.append(callback)

    def transition(self, new_state: RunState, reason: Optional[str] = None) -> RunState:
        """Attempt a state transition; raise ValueError if invalid."""
        with self._lock:
            allowed = _ALLOWED_TRANSITIONS.get(self._state, set())
            if new_state not in allowed:
                raise ValueError(f"Invalid transition {self._state} -> {new_state}")
            self._state = new_state
            self._reason = reason
            for cb in list(self._callbacks):
                try:
                    cb(self._state, self._reason)
                except Exception:
                    continue
            return self._state

    def abort(self, reason: str) -> bool:
        """Move to ABORTED unless already terminal. Returns True on transition."""
        with self._lock:
            if self._state in _TERMINAL_STATES:
                return False
            self.transition(RunState.ABORTED, reason=reason)
            return True

    def snapshot(self) -> tuple[RunState, Optional[str]]:
        with self._lock:
            return self._state, self._reason
