"""The ordered verification stages of a run."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from le_common.errors import (
    CommandError,
    ConfigurationError,
    GatewayError,
    OutputParseError,
    VerificationError,
)
from le_harness.config import HarnessConfig
from le_harness.context import RunContext
from le_harness.executor import CommandExecutor
from le_harness.gateway import DnsProviderClient, HealthProbe, HostResolver
from le_harness.inspector import ResourceInspector
from le_harness.manifest import materialize
from le_harness.polling import PollOutcome, PollPolicy, poll_until

logger = logging.getLogger(__name__)


class StageKind(str, Enum):
    ONE_SHOT = "one_shot"
    POLL = "poll"


def _always(_config: HarnessConfig) -> bool:
    return True


@dataclass
class Stage:
    """A named verification step.

    ``action`` either returns normally (passed) or raises an LEError (failed).
    ``enabled`` lets configuration skip a stage without failing the run.
    """

    name: str
    action: Callable[[RunContext], None]
    kind: StageKind = StageKind.ONE_SHOT
    description: str = ""
    enabled: Callable[[HarnessConfig], bool] = field(default=_always)


class VerificationStages:
    """Builds the eleven stages against a set of collaborators."""

    def __init__(
        self,
        config: HarnessConfig,
        *,
        executor: CommandExecutor,
        inspector: ResourceInspector,
        dns_client: Optional[DnsProviderClient],
        health_probe: HealthProbe,
        resolver: HostResolver,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.config = config
        self.executor = executor
        self.inspector = inspector
        self.dns_client = dns_client
        self.health_probe = health_probe
        self.resolver = resolver
        self._sleep = sleep or time.sleep
        self._health_re = re.compile(config.health_pattern)

    @property
    def policy(self) -> PollPolicy:
        return self.config.poll.policy()

    def _poll(self, check: Callable[[], PollOutcome], description: str):
        return poll_until(check, policy=self.policy, description=description, sleep=self._sleep)

    def build(self) -> List[Stage]:
        not_skipping_build: Callable[[HarnessConfig], bool] = lambda cfg: not cfg.skip_build
        return [
            Stage("build-image", self.build_image, description="Build the deployable image"),
            Stage(
                "push-image",
                self.push_image,
                description="Publish the image to the registry",
                enabled=not_skipping_build,
            ),
            Stage("create-namespace", self.create_namespace, description="Create the run namespace"),
            Stage("apply-manifest", self.apply_manifest, description="Materialize and apply the manifest"),
            Stage(
                "wait-service-address",
                self.wait_service_address,
                kind=StageKind.POLL,
                description="Wait for a load balancer address",
            ),
            Stage("create-dns-record", self.create_dns_record, description="Point the subdomain at the service"),
            Stage(
                "wait-dns-resolution",
                self.wait_dns_resolution,
                kind=StageKind.POLL,
                description="Wait for public DNS to resolve the subdomain",
            ),
            Stage(
                "wait-health",
                self.wait_health,
                kind=StageKind.POLL,
                description="Wait for the health endpoint to report healthy",
            ),
            Stage(
                "wait-job-completion",
                self.wait_job_completion,
                kind=StageKind.POLL,
                description="Wait for the issuance job to succeed once",
            ),
            Stage(
                "check-registration-secret",
                self.check_registration_secret,
                description="Assert the registration was persisted",
            ),
            Stage(
                "check-certificate-secret",
                self.check_certificate_secret,
                description="Assert the certificate was persisted",
            ),
        ]

    # -- one-shot stages -------------------------------------------------

    def build_image(self, ctx: RunContext) -> None:
        if not self.config.git_commit.strip():
            raise ConfigurationError(
                "No commit configured (BUILD_GIT_COMMIT); cannot build image"
            )
        ctx.set_image_ref(self.config.image_ref)
        if self.config.skip_build:
            logger.info("Skipping build; using image %s", ctx.image_ref)
            return
        argv = [
            self.config.container_engine,
            "build",
            "-t",
            ctx.image_ref,
            str(self.config.build_context),
        ]
        self.executor.check(argv, action="Image build")

    def push_image(self, ctx: RunContext) -> None:
        argv = [self.config.container_engine, "push", ctx.image_ref]
        self.executor.check(argv, action="Image push")

    def create_namespace(self, ctx: RunContext) -> None:
        argv = [self.config.kubectl, "create", "namespace", ctx.run_id]
        self.executor.check(argv, action="Namespace creation")

    def apply_manifest(self, ctx: RunContext) -> None:
        manifest = materialize(
            self.config.manifest_template, ctx.run_id, ctx.image_ref, ctx.allocated_port
        )
        ctx.track_artifact(manifest)
        argv = [self.config.kubectl, "--namespace", ctx.run_id, "apply", "-f", str(manifest)]
        self.executor.check(argv, action="Manifest apply")

    def create_dns_record(self, ctx: RunContext) -> None:
        if self.dns_client is None:
            raise ConfigurationError("DNS provider is not configured")
        if not self.config.domain:
            raise ConfigurationError("No domain configured (LE_DOMAIN)")
        if not ctx.service_address:
            raise VerificationError("No service address available for the DNS record")
        record_id = self.dns_client.create_record(
            ctx.subdomain(self.config.domain), ctx.service_address
        )
        ctx.set_dns_record_id(record_id)

    def check_registration_secret(self, ctx: RunContext) -> None:
        secret = self.inspector.secret(ctx.run_id, self.config.registration_secret)
        if not secret.has_value(self.config.registration_key):
            raise VerificationError(
                "Registration not found",
                context={
                    "secret": self.config.registration_secret,
                    "keys": sorted(secret.data),
                },
            )

    def check_certificate_secret(self, ctx: RunContext) -> None:
        secret = self.inspector.secret(ctx.run_id, self.config.cert_secret)
        key = self.config.cert_key(ctx.run_id)
        if not secret.has_value(key):
            raise VerificationError(
                f"Certificate {key} not found",
                context={"secret": self.config.cert_secret, "keys": sorted(secret.data)},
            )

    # -- polling stages --------------------------------------------------

    def wait_service_address(self, ctx: RunContext) -> None:
        def check() -> PollOutcome[str]:
            try:
                snapshot = self.inspector.service(ctx.run_id, self.config.service_name)
            except (CommandError, OutputParseError) as exc:
                return PollOutcome.not_ready(str(exc))
            if not snapshot.ready:
                return PollOutcome.not_ready("no load balancer address yet")
            return PollOutcome.ok(snapshot.address)

        address = self._poll(check, "service address")
        ctx.set_service_address(address)
        logger.info("Service address found: %s", address)

    def wait_dns_resolution(self, ctx: RunContext) -> None:
        hostname = ctx.subdomain(self.config.domain)

        def check() -> PollOutcome[str]:
            try:
                addresses = self.resolver.resolve(hostname)
            except GatewayError as exc:
                return PollOutcome.not_ready(str(exc))
            if not addresses or addresses[0] != ctx.service_address:
                return PollOutcome.not_ready(f"{hostname} resolves to {addresses}")
            return PollOutcome.ok(addresses[0])

        self._poll(check, f"DNS resolution of {hostname}")
        logger.info("%s resolves to %s", hostname, ctx.service_address)

    def wait_health(self, ctx: RunContext) -> None:
        url = f"http://{ctx.subdomain(self.config.domain)}"

        def check() -> PollOutcome[str]:
            try:
                response = self.health_probe.check(url)
            except GatewayError as exc:
                return PollOutcome.not_ready(str(exc))
            if response.status != 200:
                return PollOutcome.not_ready(f"status {response.status}")
            if not self._health_re.search(response.body):
                return PollOutcome.not_ready("health body did not match")
            return PollOutcome.ok(response.body)

        self._poll(check, f"health of {url}")
        logger.info("Health check matched for %s", url)

    def wait_job_completion(self, ctx: RunContext) -> None:
        def check() -> PollOutcome[int]:
            try:
                snapshot = self.inspector.job(ctx.run_id, self.config.job_name)
            except (CommandError, OutputParseError) as exc:
                return PollOutcome.not_ready(str(exc))
            if snapshot.succeeded != 1:
                return PollOutcome.not_ready(
                    f"succeeded={snapshot.succeeded} failed={snapshot.failed}"
                )
            return PollOutcome.ok(snapshot.succeeded)

        self._poll(check, f"job {self.config.job_name}")
