"""Harness configuration (file + environment)."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from le_common.config.env import is_set_env, parse_bool_env, parse_float_env
from le_common.errors import ConfigurationError
from le_harness.gateway import DEFAULT_DNS_API_URL
from le_harness.polling import PollPolicy

DEFAULT_IMAGE_REPOSITORY = "quay.io/hiphipjorge/auto-kubernetes-lets-encrypt"
DEPLOYMENT_NAME = "auto-kubernetes-lets-encrypt"


class DnsConfig(BaseModel):
    """DNS provider credentials and zone."""

    zone_id: str = Field(default="", description="Zone that receives the run-scoped A record")
    auth_email: str = Field(default="", description="Value for the X-Auth-Email header")
    auth_key: str = Field(default="", repr=False, description="Value for the X-Auth-Key header")
    api_url: str = Field(default=DEFAULT_DNS_API_URL, description="Base URL of the DNS REST API")

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"DnsConfig: 'api_url' must be an http(s) URL, got: {value}")
        return value.rstrip("/")


class PollConfig(BaseModel):
    """Fixed-interval polling settings."""

    interval_seconds: float = Field(default=1.0, gt=0, description="Delay between poll attempts")
    timeout_seconds: Optional[float] = Field(
        default=900.0,
        ge=0,
        description="Deadline for each polling stage; 0 or null polls forever",
    )

    def policy(self) -> PollPolicy:
        timeout = self.timeout_seconds or None
        return PollPolicy(interval=self.interval_seconds, timeout=timeout)


class HarnessConfig(BaseModel):
    """Everything a verification run needs to know up front."""

    git_commit: str = Field(default="", description="Commit used as the image tag")
    image_repository: str = Field(default=DEFAULT_IMAGE_REPOSITORY)
    build_context: Path = Field(default=Path("server"), description="Directory passed to the image build")
    skip_build: bool = Field(default=False, description="Reuse an already published image")
    teardown: bool = Field(default=True, description="Delete run-scoped resources at the end")
    domain: str = Field(default="", description="Parent domain for the run subdomain")
    manifest_template: Path = Field(default=Path("test-fixtures/kubernetes-resources.yml"))
    container_engine: str = Field(default="docker")
    kubectl: str = Field(default="kubectl")
    service_name: str = Field(default=DEPLOYMENT_NAME)
    job_name: str = Field(default=DEPLOYMENT_NAME)
    registration_secret: str = Field(default=f"{DEPLOYMENT_NAME}-user")
    registration_key: str = Field(default="registration")
    cert_secret: str = Field(default=f"{DEPLOYMENT_NAME}-certs")
    health_pattern: str = Field(default="Healthy.*true", description="Regex the health body must match")
    dns: DnsConfig = Field(default_factory=DnsConfig)
    poll: PollConfig = Field(default_factory=PollConfig)

    @model_validator(mode="after")
    def validate_tools(self) -> "HarnessConfig":
        if not self.container_engine.strip():
            raise ValueError("HarnessConfig: 'container_engine' must be non-empty")
        if not self.kubectl.strip():
            raise ValueError("HarnessConfig: 'kubectl' must be non-empty")
        return self

    @property
    def image_ref(self) -> str:
        return f"{self.image_repository}:{self.git_commit}"

    def cert_key(self, run_id: str) -> str:
        return f"{run_id}.{self.domain}.crt"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HarnessConfig":
        return cls.model_validate(data)


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read config file {path}", context={"path": path}, cause=exc
        ) from exc
    try:
        if path.suffix.lower() in {".yml", ".yaml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(
            f"Cannot parse config file {path}", context={"path": path}, cause=exc
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping", context={"path": path}
        )
    return data


def _apply_env(data: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    merged = dict(data)
    dns = dict(merged.get("dns") or {})
    poll = dict(merged.get("poll") or {})

    plain = {
        "BUILD_GIT_COMMIT": "git_commit",
        "LE_IMAGE_REPOSITORY": "image_repository",
        "LE_BUILD_CONTEXT": "build_context",
        "LE_DOMAIN": "domain",
        "LE_MANIFEST_TEMPLATE": "manifest_template",
        "LE_CONTAINER_ENGINE": "container_engine",
        "LE_KUBECTL": "kubectl",
    }
    for var, key in plain.items():
        if env.get(var):
            merged[key] = env[var]

    # Flag semantics: presence of a non-empty value turns the behaviour on.
    if is_set_env(env.get("SKIP_BUILD")):
        merged["skip_build"] = True
    if is_set_env(env.get("NO_TEARDOWN")):
        merged["teardown"] = False
    teardown = parse_bool_env(env.get("LE_TEARDOWN"))
    if teardown is not None:
        merged["teardown"] = teardown

    dns_vars = {
        "LE_DNS_ZONE_ID": "zone_id",
        "LE_DNS_AUTH_EMAIL": "auth_email",
        "CLOUDFLARE_API_KEY": "auth_key",
        "LE_DNS_API_URL": "api_url",
    }
    for var, key in dns_vars.items():
        if env.get(var):
            dns[key] = env[var]

    interval = parse_float_env(env.get("LE_POLL_INTERVAL"))
    if interval is not None:
        poll["interval_seconds"] = interval
    timeout = parse_float_env(env.get("LE_POLL_TIMEOUT"))
    if timeout is not None:
        poll["timeout_seconds"] = timeout

    merged["dns"] = dns
    merged["poll"] = poll
    return merged


def load_config(
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> HarnessConfig:
    """Build a HarnessConfig from an optional file, the environment and overrides."""
    environ = os.environ if env is None else env
    data = _read_config_file(Path(path)) if path is not None else {}
    data = _apply_env(data, environ)
    if overrides:
        data.update(overrides)
    try:
        return HarnessConfig.from_dict(data)
    except ValidationError as exc:
        raise ConfigurationError(
            "Invalid harness configuration",
            context={"errors": exc.errors(include_url=False)},
            cause=exc,
        ) from exc
