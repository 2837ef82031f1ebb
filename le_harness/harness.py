"""Wire the collaborators together and drive one verification run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from le_common.logging import bound_log_context
from le_harness.config import HarnessConfig
from le_harness.context import RunContext
from le_harness.executor import CommandExecutor
from le_harness.gateway import DnsProviderClient, HealthProbe, HostResolver
from le_harness.inspector import ResourceInspector
from le_harness.interrupts import InterruptListener
from le_harness.sequencer import RunSummary, StageSequencer
from le_harness.stages import VerificationStages
from le_harness.teardown import TeardownController, TeardownReport

logger = logging.getLogger(__name__)


def build_dns_client(config: HarnessConfig) -> Optional[DnsProviderClient]:
    """Return a DNS client when the zone is configured, otherwise None."""
    if not config.dns.zone_id:
        return None
    return DnsProviderClient(
        zone_id=config.dns.zone_id,
        auth_email=config.dns.auth_email,
        auth_key=config.dns.auth_key,
        api_url=config.dns.api_url,
    )


@dataclass
class Collaborators:
    """External-facing dependencies of a run; tests substitute fakes."""

    executor: CommandExecutor = field(default_factory=CommandExecutor)
    dns_client: Optional[DnsProviderClient] = None
    health_probe: HealthProbe = field(default_factory=HealthProbe)
    resolver: HostResolver = field(default_factory=HostResolver)
    inspector: Optional[ResourceInspector] = None
    sleep: Optional[Callable[[float], None]] = None

    @classmethod
    def from_config(cls, config: HarnessConfig) -> "Collaborators":
        return cls(dns_client=build_dns_client(config))


@dataclass
class HarnessResult:
    summary: RunSummary
    teardown: Optional[TeardownReport]

    @property
    def exit_code(self) -> int:
        return self.summary.exit_code


def build_teardown(config: HarnessConfig, collaborators: Collaborators) -> TeardownController:
    return TeardownController(
        collaborators.executor,
        collaborators.dns_client,
        kubectl=config.kubectl,
        sweep_dir=config.manifest_template.parent,
        enabled=config.teardown,
    )


def run_harness(
    config: HarnessConfig,
    *,
    collaborators: Optional[Collaborators] = None,
    ctx: Optional[RunContext] = None,
    install_signals: bool = True,
) -> HarnessResult:
    """Execute every stage, then tear down exactly once.

    Teardown is reachable from the end of the main flow and from the
    interrupt listener; the controller's gate lets only one body run.
    """
    deps = collaborators or Collaborators.from_config(config)
    run_ctx = ctx or RunContext()
    inspector = deps.inspector or ResourceInspector(deps.executor, kubectl=config.kubectl)
    stages = VerificationStages(
        config,
        executor=deps.executor,
        inspector=inspector,
        dns_client=deps.dns_client,
        health_probe=deps.health_probe,
        resolver=deps.resolver,
        sleep=deps.sleep,
    ).build()
    teardown = build_teardown(config, deps)

    with bound_log_context(run_id=run_ctx.run_id):
        logger.info(
            "Starting run %s (port %s, teardown %s)",
            run_ctx.run_id,
            run_ctx.allocated_port,
            "enabled" if config.teardown else "disabled",
        )
        listener = InterruptListener(lambda: teardown.run_once(run_ctx))
        if install_signals:
            listener.start()
        report: Optional[TeardownReport] = None
        try:
            sequencer = StageSequencer(
                stages, run_ctx, config, stop_requested=listener.stop_requested
            )
            summary = sequencer.run()
        finally:
            report = teardown.run_once(run_ctx)
            listener.close()
        logger.info("Run %s finished: %s", run_ctx.run_id, summary.state.value)
        return HarnessResult(summary=summary, teardown=report)
