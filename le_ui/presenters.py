"""Turn harness results into table models."""

from __future__ import annotations

from typing import Sequence

from le_harness.api import RunSummary, Stage, StageStatus, TeardownReport
from le_ui.console import TableModel

_STATUS_LABELS = {
    StageStatus.PENDING: "…",
    StageStatus.RUNNING: "running",
    StageStatus.PASSED: "✓ passed",
    StageStatus.FAILED: "✗ failed",
    StageStatus.SKIPPED: "- skipped",
}


def _format_duration(seconds: float | None) -> str:
    if seconds is None:
        return ""
    return f"{seconds:.1f}s"


def build_summary_table(summary: RunSummary) -> TableModel:
    rows: list[list[str]] = []
    for idx, record in enumerate(summary.stages, start=1):
        detail = ""
        if record.status == StageStatus.FAILED and record.error:
            detail = str(record.error.get("error", ""))
        elif record.status == StageStatus.SKIPPED:
            detail = record.skip_reason or ""
        rows.append(
            [
                str(idx),
                record.name,
                _STATUS_LABELS.get(record.status, record.status.value),
                _format_duration(record.duration_seconds),
                detail,
            ]
        )
    return TableModel(
        title=f"Run {summary.run_id}: {summary.state.value}",
        columns=["#", "Stage", "Status", "Duration", "Detail"],
        rows=rows,
    )


def build_teardown_table(report: TeardownReport) -> TableModel:
    if report.dns_record_deleted is None:
        dns = "none created"
    else:
        dns = "deleted" if report.dns_record_deleted else "not deleted"
    rows = [
        ["Namespace", "deleted" if report.namespace_deleted else "not deleted"],
        ["Files", ", ".join(str(p) for p in report.files_removed) or "none"],
        ["DNS record", dns],
    ]
    for error in report.errors:
        rows.append(["Error", error])
    return TableModel(title=f"Teardown {report.run_id}", columns=["Resource", "Result"], rows=rows)


def build_stage_list_table(stages: Sequence[Stage]) -> TableModel:
    rows = [
        [str(idx), stage.name, stage.kind.value, stage.description]
        for idx, stage in enumerate(stages, start=1)
    ]
    return TableModel(title="Verification stages", columns=["#", "Stage", "Kind", "Description"], rows=rows)
