"""Version-control access used by the resolver.

The resolver only needs four questions answered: where the root is, which
branch is checked out, whether the tree is clean and, for cleanup, to create
a backup branch. ``VersionControlPort`` captures exactly that so tests can
swap in a fake.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from .errors import CheckpointError

logger = logging.getLogger("specify.vcs")


class VersionControlPort(ABC):
    """Minimal version-control interface."""

    @abstractmethod
    def current_root(self, start: Path) -> Optional[Path]:
        """Return the repository root containing ``start``, or None."""

    @abstractmethod
    def current_branch(self, root: Path) -> str:
        """Return the checked-out branch name; empty when there is none."""

    @abstractmethod
    def is_clean(self, root: Path) -> bool:
        """Return True when tracked files have no uncommitted changes."""

    @abstractmethod
    def create_checkpoint(self, root: Path, name: str) -> None:
        """Create branch ``name`` at HEAD. Existing names are rejected."""


class GitVersionControl(VersionControlPort):
    """``VersionControlPort`` backed by the ``git`` executable."""

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def _run(self, args: List[str], cwd: Path) -> subprocess.CompletedProcess:
        cmd = [self.executable, *args]
        logger.debug(f"Running {' '.join(cmd)} in {cwd}")
        return subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True)

    def current_root(self, start: Path) -> Optional[Path]:
        try:
            result = self._run(["rev-parse", "--show-toplevel"], start)
        except (subprocess.CalledProcessError, OSError) as e:
            # Not a work tree, or git is not installed
            logger.debug(f"git root query failed in {start}: {e}")
            return None
        output = result.stdout.strip()
        if not output:
            return None
        return Path(output).resolve()

    def current_branch(self, root: Path) -> str:
        try:
            result = self._run(["branch", "--show-current"], root)
        except (subprocess.CalledProcessError, OSError) as e:
            logger.debug(f"git branch query failed in {root}: {e}")
            return ""
        return result.stdout.strip()

    def is_clean(self, root: Path) -> bool:
        try:
            result = self._run(["status", "--porcelain", "--untracked-files=no"], root)
        except (subprocess.CalledProcessError, OSError) as e:
            # Unknown state counts as dirty
            logger.warning(f"git status failed in {root}: {e}")
            return False
        return result.stdout.strip() == ""

    def create_checkpoint(self, root: Path, name: str) -> None:
        try:
            self._run(["branch", name], root)
        except subprocess.CalledProcessError as e:
            raise CheckpointError(name, (e.stderr or "").strip() or None) from e
        except OSError as e:
            raise CheckpointError(name, str(e)) from e
        logger.info(f"Created backup branch {name} in {root}")
