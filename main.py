"""MCP server exposing the feature environment resolver as tools."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from specify_env import (
    FeatureEnvironmentResolver,
    ResolveOptions,
    SpecifyError,
    create_prp as _create_prp,
)
from specify_env.config import Settings
from specify_env.models import MODE_CLEANUP, MODE_VALIDATE, OUTPUT_MACHINE

mcp = FastMCP("specify-env")

PROJECT_ROOT_ENV = "SPECIFY_PROJECT_ROOT"


def _start_dir(cwd: Optional[str]) -> Path:
    if cwd:
        resolved = Path(cwd).expanduser().resolve()
        if not resolved.exists():
            raise ValueError(f"Provided directory '{cwd}' does not exist.")
        return resolved

    env_root = os.getenv(PROJECT_ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise ValueError(
                f"Environment variable {PROJECT_ROOT_ENV} points to '{env_root}', which does not exist."
            )
        return env_path

    return Path.cwd().resolve()


def _resolver() -> FeatureEnvironmentResolver:
    # Settings are re-read on every call
    return FeatureEnvironmentResolver(settings=Settings.from_env())


def _resolve(mode: str, options: ResolveOptions, cwd: Optional[str]) -> Dict[str, Any]:
    try:
        environment = _resolver().resolve(mode, options, start=_start_dir(cwd))
    except SpecifyError as e:
        raise ValueError(str(e)) from e
    return environment.to_dict()


@mcp.tool()
def resolve_validation(focus: Optional[str] = None, cwd: Optional[str] = None) -> Dict[str, Any]:
    """Resolve repository root, active feature, artifact paths and validation tools.
    Call this before running /validate; write the report to VALIDATION_REPORT.
    focus: requirements | budget | consistency | constitution | practices."""

    options = ResolveOptions(output_format=OUTPUT_MACHINE, focus_area=focus)
    return _resolve(MODE_VALIDATE, options, cwd)


@mcp.tool()
def resolve_cleanup(
    cleanup_type: str = "all",
    execute: bool = False,
    archive_only: bool = False,
    cwd: Optional[str] = None,
) -> Dict[str, Any]:
    """Resolve the cleanup environment and create a backup branch.
    Fails when the working tree has uncommitted changes. The result names
    BACKUP_BRANCH for rollback and CLEANUP_REPORT for the report.
    cleanup_type: dead-code | duplicates | unused-files | outdated-docs | all."""

    options = ResolveOptions(
        output_format=OUTPUT_MACHINE,
        cleanup_type=cleanup_type,
        execute=execute,
        archive_only=archive_only,
    )
    return _resolve(MODE_CLEANUP, options, cwd)


@mcp.tool()
def create_prp(cwd: Optional[str] = None) -> Dict[str, str]:
    """Generate (or refresh) prps/<feature>.md from .specify/templates/prp-template.md."""

    try:
        result = _create_prp(_resolver(), _start_dir(cwd))
    except SpecifyError as e:
        raise ValueError(str(e)) from e
    return result.to_dict()


@mcp.resource("specify://environment")
def resource_environment() -> str:
    """Human-readable view of the validation environment for the server's directory."""

    try:
        environment = _resolver().resolve(MODE_VALIDATE, ResolveOptions(), start=_start_dir(None))
    except SpecifyError as e:
        return f"No environment available: {e}"
    return "\n".join(environment.to_lines())


if __name__ == "__main__":
    mcp.run(transport="stdio")
