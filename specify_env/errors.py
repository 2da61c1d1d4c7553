"""Fatal errors raised while resolving a feature environment.

Anything that is merely incomplete (no ``specs/`` directory, missing
artifact files, tools not on PATH) is reported in the result instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class SpecifyError(RuntimeError):
    """Base class for errors that abort an invocation with exit code 1."""

    exit_code = 1


class NoRepoRootError(SpecifyError):
    """Neither git nor a ``.git``/``.specify`` marker identified a repository root."""

    def __init__(self, start: Path):
        self.start = start
        super().__init__(
            f"Could not determine repository root from '{start}'. "
            "Run inside a git repository or a directory containing '.specify'."
        )


class DirtyWorkingTreeError(SpecifyError):
    """Cleanup was requested while the working tree has uncommitted changes."""

    def __init__(self, repo_root: Path):
        self.repo_root = repo_root
        super().__init__(
            "You have uncommitted changes. Please commit or stash them before running cleanup."
        )


class CheckpointError(SpecifyError):
    """The cleanup backup branch could not be created."""

    def __init__(self, branch: str, reason: Optional[str] = None):
        self.branch = branch
        self.reason = reason
        message = f"Could not create backup branch '{branch}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TemplateNotFoundError(SpecifyError):
    """A template referenced by a command does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"PRP template not found at {path}")
