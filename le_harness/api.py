"""Public harness API surface."""

from le_harness.config import DnsConfig, HarnessConfig, PollConfig, load_config
from le_harness.context import RunContext, allocate_port, new_run_id
from le_harness.executor import CommandExecutor, CommandResult
from le_harness.gateway import DnsProviderClient, HealthProbe, HealthResponse, HostResolver
from le_harness.harness import Collaborators, HarnessResult, build_dns_client, build_teardown, run_harness
from le_harness.inspector import JobSnapshot, ResourceInspector, SecretSnapshot, ServiceSnapshot
from le_harness.interrupts import InterruptListener
from le_harness.manifest import materialize
from le_harness.polling import PollOutcome, PollPolicy, poll_until
from le_harness.run_state import RunState, RunStateMachine, StageStatus
from le_harness.sequencer import RunSummary, StageRecord, StageSequencer
from le_harness.stages import Stage, StageKind, VerificationStages
from le_harness.teardown import OnceGate, TeardownController, TeardownReport

__all__ = [
    "Collaborators",
    "CommandExecutor",
    "CommandResult",
    "DnsConfig",
    "DnsProviderClient",
    "HarnessConfig",
    "HarnessResult",
    "HealthProbe",
    "HealthResponse",
    "HostResolver",
    "InterruptListener",
    "JobSnapshot",
    "OnceGate",
    "PollConfig",
    "PollOutcome",
    "PollPolicy",
    "ResourceInspector",
    "RunContext",
    "RunState",
    "RunStateMachine",
    "RunSummary",
    "SecretSnapshot",
    "ServiceSnapshot",
    "Stage",
    "StageKind",
    "StageRecord",
    "StageSequencer",
    "StageStatus",
    "TeardownController",
    "TeardownReport",
    "VerificationStages",
    "allocate_port",
    "build_dns_client",
    "build_teardown",
    "load_config",
    "materialize",
    "new_run_id",
    "poll_until",
    "run_harness",
]
