"""
Environment checks for running the harness (doctor).
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from typing import List, Tuple

from le_harness.api import HarnessConfig
from le_ui.console import RichPresenter, TableModel


@dataclass
class DoctorCheckItem:
    label: str
    ok: bool
    required: bool


@dataclass
class DoctorCheckGroup:
    title: str
    items: List[DoctorCheckItem]
    failures: int


@dataclass
class DoctorReport:
    groups: List[DoctorCheckGroup] = field(default_factory=list)

    @property
    def total_failures(self) -> int:
        return sum(group.failures for group in self.groups)


class DoctorService:
    """Check local prerequisites for a verification run."""

    def __init__(self, config: HarnessConfig) -> None:
        self.config = config

    def _check_command(self, name: str) -> bool:
        return shutil.which(name) is not None

    def _build_check_group(
        self, title: str, items: List[Tuple[str, bool, bool]]
    ) -> DoctorCheckGroup:
        failures = 0
        check_items = []
        for label, ok, required in items:
            check_items.append(DoctorCheckItem(label, ok, required))
            failures += 0 if ok or not required else 1
        return DoctorCheckGroup(title, check_items, failures)

    def check_all(self) -> DoctorReport:
        cfg = self.config
        tools = [
            (cfg.container_engine, self._check_command(cfg.container_engine), not cfg.skip_build),
            (cfg.kubectl, self._check_command(cfg.kubectl), True),
        ]
        settings = [
            ("Commit (BUILD_GIT_COMMIT)", bool(cfg.git_commit), True),
            ("Domain (LE_DOMAIN)", bool(cfg.domain), True),
            ("DNS zone (LE_DNS_ZONE_ID)", bool(cfg.dns.zone_id), True),
            ("DNS email (LE_DNS_AUTH_EMAIL)", bool(cfg.dns.auth_email), True),
            ("DNS key (CLOUDFLARE_API_KEY)", bool(cfg.dns.auth_key), True),
            ("Manifest template", cfg.manifest_template.is_file(), True),
        ]
        return DoctorReport(
            groups=[
                self._build_check_group("Tools", tools),
                self._build_check_group("Settings", settings),
            ]
        )


def render_doctor_report(ui: RichPresenter, report: DoctorReport) -> bool:
    """
    Render a doctor report to the provided UI.

    Returns True when all required checks passed.
    """
    for group in report.groups:
        rows = [[item.label, "✓" if item.ok else "✗"] for item in group.items]
        ui.table(TableModel(title=group.title, columns=["Item", "Status"], rows=rows))

    if report.total_failures > 0:
        ui.error(f"Found {report.total_failures} failures.")
        return False

    ui.success("All checks passed.")
    return True
