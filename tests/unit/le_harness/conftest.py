from pathlib import Path

import pytest

from le_harness.config import HarnessConfig
from le_harness.context import RunContext

TEMPLATE = (
    "kind: Job\n"
    "image: *IMAGE_NAME*\n"
    "domains: *SUBDOMAIN*.example.com\n"
    "nodePort: *NODE_PORT*\n"
)


@pytest.fixture
def template_path(tmp_path: Path) -> Path:
    path = tmp_path / "kubernetes-resources.yml"
    path.write_text(TEMPLATE, encoding="utf-8")
    return path


@pytest.fixture
def harness_config(template_path: Path) -> HarnessConfig:
    return HarnessConfig.from_dict(
        {
            "git_commit": "abc123",
            "domain": "example.com",
            "manifest_template": str(template_path),
            "dns": {"zone_id": "zone", "auth_email": "ops@example.com", "auth_key": "k"},
            "poll": {"interval_seconds": 0.01, "timeout_seconds": 30},
        }
    )


@pytest.fixture
def run_ctx() -> RunContext:
    return RunContext(run_id="424242", allocated_port=30017)
