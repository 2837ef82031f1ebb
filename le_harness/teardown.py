"""Best-effort cleanup of every resource a run created."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from le_harness.context import RunContext
from le_harness.executor import CommandExecutor
from le_harness.gateway import DnsProviderClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OnceGate:
    """Run a callable at most once across threads.

    A caller arriving while the body is executing blocks until it finishes,
    so neither call site returns before cleanup is done.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def run(self, func: Callable[[], T]) -> Optional[T]:
        with self._lock:
            if self._done:
                return None
            self._done = True
            return func()


@dataclass
class TeardownReport:
    """What each cleanup sub-step achieved."""

    run_id: str
    namespace_deleted: bool = False
    files_removed: List[Path] = field(default_factory=list)
    dns_record_deleted: Optional[bool] = None
    errors: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.errors


class TeardownController:
    """Delete the run namespace, generated files and DNS record.

    Each sub-step is guarded independently; failures are logged and recorded
    in the report but never raised, so cleanup cannot change a run verdict.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        dns_client: Optional[DnsProviderClient],
        *,
        kubectl: str = "kubectl",
        sweep_dir: Optional[Path] = None,
        enabled: bool = True,
    ) -> None:
        self.executor = executor
        self.dns_client = dns_client
        self.kubectl = kubectl
        self.sweep_dir = sweep_dir
        self.enabled = enabled
        self._gate = OnceGate()

    @property
    def has_run(self) -> bool:
        return self._gate.done

    def run_once(self, ctx: RunContext) -> Optional[TeardownReport]:
        """Tear down through the gate; later callers get None."""
        return self._gate.run(lambda: self.teardown(ctx))

    def teardown(self, ctx: RunContext) -> TeardownReport:
        report = TeardownReport(run_id=ctx.run_id)
        if not self.enabled:
            logger.info("Teardown disabled; keeping resources of run %s", ctx.run_id)
            return report
        logger.info("Tearing down run %s", ctx.run_id)
        for step in (self._delete_namespace, self._delete_files, self._delete_dns_record):
            try:
                step(ctx, report)
            except Exception as exc:
                logger.warning("Teardown step %s failed: %s", step.__name__, exc)
                report.errors.append(f"{step.__name__}: {exc}")
        return report

    def _delete_namespace(self, ctx: RunContext, report: TeardownReport) -> None:
        argv = [self.kubectl, "delete", "namespace", ctx.run_id, "--ignore-not-found"]
        logger.info("Delete namespace %s", ctx.run_id)
        result = self.executor.run(argv)
        if not result.ok:
            logger.warning("Error deleting namespace %s: %s", ctx.run_id, result.stderr.strip())
            report.errors.append(f"namespace: {result.stderr.strip()}")
            return
        report.namespace_deleted = True

    def _candidate_files(self, ctx: RunContext) -> List[Path]:
        paths = list(ctx.artifacts())
        prefix = f"{ctx.run_id}-"
        if self.sweep_dir is not None and self.sweep_dir.is_dir():
            for entry in sorted(self.sweep_dir.iterdir()):
                if entry.name.startswith(prefix) and entry.is_file() and entry not in paths:
                    paths.append(entry)
        return paths

    def _delete_files(self, ctx: RunContext, report: TeardownReport) -> None:
        for path in self._candidate_files(ctx):
            try:
                existed = path.exists()
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Failed to remove %s: %s", path, exc)
                report.errors.append(f"file {path}: {exc}")
                continue
            if existed:
                logger.info("Deleted file %s", path)
                report.files_removed.append(path)

    def _delete_dns_record(self, ctx: RunContext, report: TeardownReport) -> None:
        record_id = ctx.dns_record_id
        if not record_id:
            logger.debug("No DNS record created for run %s", ctx.run_id)
            return
        if self.dns_client is None:
            report.errors.append(f"dns: no client configured to delete {record_id}")
            return
        report.dns_record_deleted = self.dns_client.delete_record(record_id)
        if not report.dns_record_deleted:
            report.errors.append(f"dns: record {record_id} not deleted")
