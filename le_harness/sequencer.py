"""Ordered, fail-fast execution of verification stages."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from le_common.errors import LEError, error_to_payload
from le_harness.config import HarnessConfig
from le_harness.context import RunContext
from le_harness.run_state import RunState, StageStatus
from le_harness.stages import Stage

logger = logging.getLogger(__name__)

SKIP_AFTER_FAILURE = "run aborted"
SKIP_DISABLED = "disabled by configuration"
INTERRUPTED = "interrupted"


@dataclass
class StageRecord:
    """Observed outcome of one stage."""

    name: str
    status: StageStatus = StageStatus.PENDING
    skip_reason: Optional[str] = None
    error: Optional[Dict[str, Any]] = None
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "skip_reason": self.skip_reason,
            "error": self.error,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class RunSummary:
    """Aggregate outcome of a run."""

    run_id: str
    state: RunState
    reason: Optional[str] = None
    stages: List[StageRecord] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 0 if self.state == RunState.COMPLETED else 1

    def stage(self, name: str) -> StageRecord:
        for record in self.stages:
            if record.name == name:
                return record
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "state": self.state.value,
            "reason": self.reason,
            "exit_code": self.exit_code,
            "stages": [record.to_dict() for record in self.stages],
        }


class StageSequencer:
    """Run stages in order; once the run aborts every later stage is skipped.

    ``stop_requested`` is consulted before each stage so an interrupt keeps
    the next stage from starting. A stage already running is not cancelled.
    """

    def __init__(
        self,
        stages: Sequence[Stage],
        ctx: RunContext,
        config: HarnessConfig,
        *,
        stop_requested: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stages = list(stages)
        self.ctx = ctx
        self.config = config
        self._stop_requested = stop_requested or (lambda: False)
        self._clock = clock
        self.records = [StageRecord(stage.name) for stage in self.stages]

    def run(self) -> RunSummary:
        self.ctx.state.transition(RunState.EXECUTING)
        logger.info("Run %s executing %d stages", self.ctx.run_id, len(self.stages))
        for stage, record in zip(self.stages, self.records):
            if not self.ctx.failed and self._stop_requested():
                logger.warning("Interrupt received; aborting before %s", stage.name)
                self.ctx.mark_failed(INTERRUPTED)
            self._run_stage(stage, record)
        if not self.ctx.failed:
            self.ctx.state.transition(RunState.COMPLETED)
        return self.summary()

    def summary(self) -> RunSummary:
        state, reason = self.ctx.state.snapshot()
        return RunSummary(run_id=self.ctx.run_id, state=state, reason=reason, stages=list(self.records))

    def _skip(self, record: StageRecord, reason: str) -> None:
        record.status = StageStatus.SKIPPED
        record.skip_reason = reason
        logger.info("Stage %s skipped: %s", record.name, reason)

    def _run_stage(self, stage: Stage, record: StageRecord) -> None:
        if self.ctx.failed:
            self._skip(record, SKIP_AFTER_FAILURE)
            return
        if not stage.enabled(self.config):
            self._skip(record, SKIP_DISABLED)
            return

        record.status = StageStatus.RUNNING
        record.started_at = self._clock()
        logger.info("Stage %s started", stage.name)
        try:
            stage.action(self.ctx)
        except LEError as exc:
            self._fail(record, stage, exc, error_to_payload(exc))
            return
        except Exception as exc:
            self._fail(
                record,
                stage,
                exc,
                {"error_type": type(exc).__name__, "error": str(exc), "error_context": {}},
            )
            raise
        record.finished_at = self._clock()
        record.status = StageStatus.PASSED
        logger.info("Stage %s passed", stage.name)

    def _fail(
        self, record: StageRecord, stage: Stage, exc: Exception, payload: Dict[str, Any]
    ) -> None:
        record.finished_at = self._clock()
        record.status = StageStatus.FAILED
        record.error = payload
        self.ctx.mark_failed(f"{stage.name} failed: {exc}")
        logger.error("Stage %s failed: %s", stage.name, exc)
