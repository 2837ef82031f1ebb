"""CLI wiring tests with the harness stubbed out."""

import io
import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from le_common.errors import ConfigurationError
from le_harness.api import HarnessConfig, HarnessResult, RunState, RunSummary, StageRecord, StageStatus
from le_harness.teardown import TeardownReport
from le_ui import cli
from le_ui.console import RichPresenter

pytestmark = pytest.mark.unit_ui

runner = CliRunner()


@pytest.fixture
def output(monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr(cli, "ui", RichPresenter(Console(file=buffer, width=200)))
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    return buffer


@pytest.fixture
def loaded(monkeypatch):
    calls = []

    def fake_load(path=None, env=None, overrides=None):
        calls.append(dict(overrides or {}))
        return HarnessConfig.from_dict({"git_commit": "abc", "domain": "example.com", **(overrides or {})})

    monkeypatch.setattr(cli, "load_config", fake_load)
    return calls


def _result(state, reason=None):
    status = StageStatus.PASSED if state == RunState.COMPLETED else StageStatus.FAILED
    summary = RunSummary(
        run_id="77",
        state=state,
        reason=reason,
        stages=[StageRecord("build-image", status=status)],
    )
    return HarnessResult(summary=summary, teardown=TeardownReport(run_id="77", namespace_deleted=True))


def test_run_success_exits_zero(monkeypatch, output, loaded, tmp_path):
    monkeypatch.setattr(cli, "run_harness", lambda cfg: _result(RunState.COMPLETED))
    summary_path = tmp_path / "summary.json"

    result = runner.invoke(cli.app, ["run", "--summary-json", str(summary_path)])

    assert result.exit_code == 0
    text = output.getvalue()
    assert "Run 77 completed." in text
    assert "Teardown 77" in text
    assert json.loads(summary_path.read_text(encoding="utf-8"))["state"] == "completed"


def test_run_failure_exits_one(monkeypatch, output, loaded):
    monkeypatch.setattr(
        cli, "run_harness", lambda cfg: _result(RunState.ABORTED, "build-image failed: boom")
    )
    result = runner.invoke(cli.app, ["run"])
    assert result.exit_code == 1
    assert "aborted: build-image failed: boom" in output.getvalue()


def test_no_teardown_flag_overrides_config(monkeypatch, output, loaded):
    seen = []

    def fake_run(cfg):
        seen.append(cfg.teardown)
        return _result(RunState.COMPLETED)

    monkeypatch.setattr(cli, "run_harness", fake_run)
    result = runner.invoke(cli.app, ["run", "--no-teardown"])

    assert result.exit_code == 0
    assert loaded == [{"teardown": False}]
    assert seen == [False]
    assert "Teardown 77" not in output.getvalue()


def test_configuration_error_exits_two(monkeypatch, output):
    def broken(path=None, env=None, overrides=None):
        raise ConfigurationError(
            "Invalid harness configuration", context={"errors": [{"loc": ("poll",)}]}
        )

    monkeypatch.setattr(cli, "load_config", broken)
    result = runner.invoke(cli.app, ["run"])
    assert result.exit_code == 2
    assert "Configuration error" in output.getvalue()


def test_stages_lists_all_in_order(output, loaded):
    result = runner.invoke(cli.app, ["stages"])
    assert result.exit_code == 0
    text = output.getvalue()
    assert text.index("build-image") < text.index("wait-health") < text.index(
        "check-certificate-secret"
    )


def test_doctor_reports_missing_settings(monkeypatch, output):
    monkeypatch.setattr(
        cli, "load_config", lambda path=None, env=None, overrides=None: HarnessConfig()
    )
    result = runner.invoke(cli.app, ["doctor"])
    assert result.exit_code == 1
    assert "failures" in output.getvalue()


def test_teardown_command_deletes_by_run_id(monkeypatch, output, loaded):
    calls = []

    class FakeController:
        def teardown(self, ctx):
            calls.append((ctx.run_id, ctx.dns_record_id))
            return TeardownReport(run_id=ctx.run_id, namespace_deleted=True, dns_record_deleted=True)

    monkeypatch.setattr(cli, "build_teardown", lambda cfg, deps: FakeController())
    result = runner.invoke(cli.app, ["teardown", "99", "--dns-record-id", "rec-9"])

    assert result.exit_code == 0
    assert calls == [("99", "rec-9")]
    assert "Run 99 cleaned up." in output.getvalue()
