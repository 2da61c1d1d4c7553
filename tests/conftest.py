"""Shared fixtures: fake version control, fake PATH probe, fixed clock."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from specify_env.config import Settings
from specify_env.errors import CheckpointError
from specify_env.probe import ToolProbe
from specify_env.resolver import FeatureEnvironmentResolver
from specify_env.vcs import VersionControlPort

FIXED_NOW = datetime(2025, 3, 14, 9, 26, 53)


class FakeVersionControl(VersionControlPort):
    """In-memory stand-in for git.

    ``root=None`` behaves like a directory outside any repository.
    """

    def __init__(self, root: Optional[Path] = None, branch: str = "", clean: bool = True):
        self.root = root
        self.branch = branch
        self.clean = clean
        self.checkpoints: List[str] = []
        self.clean_checks = 0

    def current_root(self, start: Path) -> Optional[Path]:
        return self.root

    def current_branch(self, root: Path) -> str:
        return self.branch

    def is_clean(self, root: Path) -> bool:
        self.clean_checks += 1
        return self.clean

    def create_checkpoint(self, root: Path, name: str) -> None:
        if name in self.checkpoints:
            raise CheckpointError(name, "a branch with that name already exists")
        self.checkpoints.append(name)


class FakeToolProbe(ToolProbe):
    """Probe answering from a fixed table; records every lookup."""

    def __init__(self, available: Optional[Dict[str, bool]] = None):
        self.available = available or {}
        self.lookups: List[str] = []

    def is_available(self, name: str) -> bool:
        self.lookups.append(name)
        return self.available.get(name, False)


@pytest.fixture(autouse=True)
def clean_specify_env(monkeypatch):
    """Keep the caller's SPECIFY_* variables out of the tests."""
    for name in ("SPECIFY_FEATURE", "SPECIFY_LOG_LEVEL", "SPECIFY_LOG_FILE", "SPECIFY_PROJECT_ROOT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_specify_logger():
    """Drop handlers the CLI installs so they do not outlive captured streams."""
    logger = logging.getLogger("specify")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def tool_probe():
    return FakeToolProbe({"python": True, "node": False})


@pytest.fixture
def make_resolver(fixed_clock, tool_probe):
    """Factory for resolvers wired to fakes."""

    def factory(vcs=None, probe=None, feature_override=None, clock=None):
        return FeatureEnvironmentResolver(
            vcs=vcs if vcs is not None else FakeVersionControl(),
            probe=probe if probe is not None else tool_probe,
            settings=Settings(feature_override=feature_override),
            clock=clock or fixed_clock,
        )

    return factory


@pytest.fixture
def marker_repo(tmp_path):
    """A repository identified only by its ``.specify`` directory."""
    root = tmp_path / "project"
    (root / ".specify").mkdir(parents=True)
    return root.resolve()


@pytest.fixture
def git_style_repo(tmp_path):
    """A repository root as the fake git reports it, with a specs tree."""
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    (root / "specs" / "001-first").mkdir(parents=True)
    (root / "specs" / "002-second").mkdir(parents=True)
    return root.resolve()


@pytest.fixture
def fake_vcs_cls():
    """The ``FakeVersionControl`` class, for tests that configure their own."""
    return FakeVersionControl


@pytest.fixture
def fake_probe_cls():
    return FakeToolProbe
