"""
Command-line interface for le-verify.

Runs the end-to-end verification of the certificate issuance deployment and
offers helpers for environment checks and manual cleanup.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from le_common.api import ConfigurationError, configure_logging
from le_harness.api import (
    Collaborators,
    HarnessConfig,
    ResourceInspector,
    RunContext,
    VerificationStages,
    build_teardown,
    load_config,
    run_harness,
)
from le_ui.console import RichPresenter
from le_ui.doctor import DoctorService, render_doctor_report
from le_ui.presenters import build_stage_list_table, build_summary_table, build_teardown_table

CONFIG_ERROR_EXIT_CODE = 2

ui = RichPresenter()

app = typer.Typer(
    help="Verify a certificate issuance deployment end to end (build, rollout, DNS, TLS health).",
    no_args_is_help=True,
)


@app.callback()
def entry(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    """Global options shared by all commands."""
    configure_logging(
        debug=debug,
        json=json_logs or None,
        log_file=str(log_file) if log_file else None,
        force=True,
    )


def _load(config: Optional[Path], **overrides: object) -> HarnessConfig:
    try:
        return load_config(config, overrides={k: v for k, v in overrides.items() if v is not None})
    except ConfigurationError as exc:
        ui.error(f"Configuration error: {exc}")
        for detail in exc.context.get("errors", []):
            ui.error(str(detail))
        raise typer.Exit(CONFIG_ERROR_EXIT_CODE)


_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="YAML or JSON config file; environment variables override its values.",
)


@app.command("run")
def run(
    config: Optional[Path] = _CONFIG_OPTION,
    no_teardown: bool = typer.Option(
        False, "--no-teardown", help="Keep the namespace, manifest and DNS record after the run."
    ),
    summary_json: Optional[Path] = typer.Option(
        None, "--summary-json", help="Write the stage outcomes to this JSON file."
    ),
) -> None:
    """Execute all verification stages, then tear down the run's resources."""
    cfg = _load(config, teardown=False if no_teardown else None)
    result = run_harness(cfg)
    summary = result.summary

    ui.table(build_summary_table(summary))
    if result.teardown is not None and cfg.teardown:
        ui.table(build_teardown_table(result.teardown))
    if summary_json:
        summary_json.write_text(json.dumps(summary.to_dict(), indent=2), encoding="utf-8")
        ui.info(f"Summary saved to {summary_json}")

    if summary.exit_code == 0:
        ui.success(f"Run {summary.run_id} completed.")
    else:
        ui.error(f"Run {summary.run_id} aborted: {summary.reason}")
    raise typer.Exit(summary.exit_code)


@app.command("teardown")
def teardown(
    run_id: str = typer.Argument(..., help="Run identifier (namespace name and subdomain)."),
    dns_record_id: Optional[str] = typer.Option(
        None, "--dns-record-id", help="DNS record created by the run, if any."
    ),
    config: Optional[Path] = _CONFIG_OPTION,
) -> None:
    """Delete the resources left behind by a previous run."""
    cfg = _load(config, teardown=True)
    ctx = RunContext(run_id=run_id)
    if dns_record_id:
        ctx.set_dns_record_id(dns_record_id)
    controller = build_teardown(cfg, Collaborators.from_config(cfg))
    report = controller.teardown(ctx)
    ui.table(build_teardown_table(report))
    if not report.clean:
        ui.warning("Teardown finished with errors.")
        raise typer.Exit(1)
    ui.success(f"Run {run_id} cleaned up.")


@app.command("doctor")
def doctor(config: Optional[Path] = _CONFIG_OPTION) -> None:
    """Check tools and settings needed for a run."""
    cfg = _load(config)
    ok = render_doctor_report(ui, DoctorService(cfg).check_all())
    if not ok:
        raise typer.Exit(1)


@app.command("stages")
def stages(config: Optional[Path] = _CONFIG_OPTION) -> None:
    """List the verification stages in execution order."""
    cfg = _load(config)
    deps = Collaborators.from_config(cfg)
    built = VerificationStages(
        cfg,
        executor=deps.executor,
        inspector=ResourceInspector(deps.executor, kubectl=cfg.kubectl),
        dns_client=deps.dns_client,
        health_probe=deps.health_probe,
        resolver=deps.resolver,
    ).build()
    ui.table(build_stage_list_table(built))


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
