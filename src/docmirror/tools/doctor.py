"""Tool handler for doctor: installation health checks.

Each check reports pass, warn or fail. Missing directories only warn, since
the first sync creates them. A broken bundled manifest or an unwritable data
directory fails.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError as PydanticValidationError

from docmirror.errors import DocMirrorError
from docmirror.models.tools import DoctorOutput, HealthCheck
from docmirror.resources import build_config, load_bundled_llms_txt, total_sections

if TYPE_CHECKING:
    from pathlib import Path

    from docmirror.state import AppState


def _check_dir(name: str, path: Path, missing_message: str) -> HealthCheck:
    if path.is_dir():
        return HealthCheck(name=name, status="pass", message=f"{path} exists")
    return HealthCheck(name=name, status="warn", message=missing_message)


def _check_bundled_manifest() -> HealthCheck:
    try:
        config = build_config(load_bundled_llms_txt())
    except (DocMirrorError, PydanticValidationError, ValueError, OSError) as exc:
        return HealthCheck(
            name="Resource Configuration",
            status="fail",
            message=f"Bundled manifest is unusable: {exc}",
        )
    return HealthCheck(
        name="Resource Configuration",
        status="pass",
        message=f"Bundled manifest lists {total_sections(config)} documents",
    )


def _overall(checks: list[HealthCheck]) -> str:
    if any(c.status == "fail" for c in checks):
        return "failed"
    if any(c.status == "warn" for c in checks):
        return "warnings"
    return "healthy"


async def handle(state: AppState) -> dict:
    """Handle a doctor tool call."""
    log = structlog.get_logger().bind(tool="doctor")
    log.info("handler_called")

    paths = state.paths
    checks = [
        _check_dir(
            "Data Directory",
            paths.root,
            f"{paths.root} not found (will be created on first update)",
        )
    ]

    # Subdirectory and permission checks only mean something once the root exists.
    if paths.root.is_dir():
        checks.append(
            _check_dir(
                "Cache Directory",
                paths.cache_dir,
                f"{paths.cache_dir} not found (will be created when needed)",
            )
        )
        checks.append(
            _check_dir(
                "Documentation Files",
                paths.docs_dir,
                "No documentation downloaded yet; run a first sync",
            )
        )

    checks.append(_check_bundled_manifest())

    if paths.root.is_dir():
        if os.access(paths.root, os.W_OK):
            checks.append(
                HealthCheck(
                    name="Write Permissions", status="pass", message="Can write to data directory"
                )
            )
        else:
            checks.append(
                HealthCheck(
                    name="Write Permissions",
                    status="fail",
                    message=f"Cannot write to {paths.root}",
                )
            )

    overall = _overall(checks)
    log.info("doctor_complete", overall_status=overall, checks=len(checks))

    output = DoctorOutput(overall_status=overall, checks=checks)
    return output.model_dump(mode="json")
