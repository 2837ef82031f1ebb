"""Per-run deployment manifest generation."""

from __future__ import annotations

import logging
from pathlib import Path

from le_common.errors import ManifestError

logger = logging.getLogger(__name__)

IMAGE_PLACEHOLDER = "*IMAGE_NAME*"
SUBDOMAIN_PLACEHOLDER = "*SUBDOMAIN*"
PORT_PLACEHOLDER = "*NODE_PORT*"


def output_path_for(template_path: Path, run_id: str) -> Path:
    """Run-scoped sibling of the template: ``<dir>/<run_id>-<name>``."""
    return template_path.parent / f"{run_id}-{template_path.name}"


def render(template: str, run_id: str, image_ref: str, port: int | str) -> str:
    """Literal placeholder substitution; values are not escaped or validated."""
    return (
        template.replace(IMAGE_PLACEHOLDER, image_ref)
        .replace(SUBDOMAIN_PLACEHOLDER, run_id)
        .replace(PORT_PLACEHOLDER, str(port))
    )


def materialize(template_path: Path, run_id: str, image_ref: str, port: int | str) -> Path:
    """Write the rendered manifest next to the template and return its path."""
    template_path = Path(template_path)
    destination = output_path_for(template_path, run_id)
    try:
        content = template_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(
            f"Cannot read manifest template {template_path}",
            context={"template": template_path},
            cause=exc,
        ) from exc
    try:
        destination.write_text(render(content, run_id, image_ref, port), encoding="utf-8")
    except OSError as exc:
        raise ManifestError(
            f"Cannot write manifest {destination}",
            context={"destination": destination},
            cause=exc,
        ) from exc
    logger.info("Materialized manifest %s", destination)
    return destination
