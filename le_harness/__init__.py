"""Stage-sequenced verification of the certificate issuance deployment."""

from le_harness.api import HarnessConfig, RunContext, RunSummary, load_config, run_harness

__all__ = ["HarnessConfig", "RunContext", "RunSummary", "load_config", "run_harness"]
