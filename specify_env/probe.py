"""Host capability probes: tools on PATH and languages present in a tree."""

from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

# Reported tool name -> executable looked up on PATH
TOOL_COMMANDS: Dict[str, str] = {
    "python": "python3",
    "node": "node",
    "markdownlint": "markdownlint",
    "vulture": "vulture",
    "ts-prune": "ts-prune",
    "pylint": "pylint",
}

# Detection order is the reporting order
LANGUAGE_EXTENSIONS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("python", (".py",)),
    ("javascript", (".js", ".ts")),
    ("go", (".go",)),
    ("rust", (".rs",)),
)

EXCLUDED_DIRS = frozenset({".git"})


class ToolProbe(ABC):
    """Answers whether a named tool can be executed."""

    @abstractmethod
    def is_available(self, name: str) -> bool:
        """Return True if ``name`` resolves on the execution PATH."""


class PathToolProbe(ToolProbe):
    """Probe backed by ``shutil.which``; nothing is cached."""

    def __init__(self, path: Optional[str] = None):
        self.path = path

    def is_available(self, name: str) -> bool:
        command = TOOL_COMMANDS.get(name, name)
        return shutil.which(command, path=self.path) is not None


def probe_tools(probe: ToolProbe, names: Iterable[str]) -> Dict[str, bool]:
    """Probe each tool once, preserving the order of ``names``."""
    return {name: probe.is_available(name) for name in names}


def detect_languages(root: Path) -> List[str]:
    """Return the languages that have at least one source file under ``root``.

    Only presence matters: once a language has a match it is no longer
    looked for, and the walk ends as soon as every language is found.
    """
    pending = dict(LANGUAGE_EXTENSIONS)
    found = set()

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [name for name in dirnames if name not in EXCLUDED_DIRS]
        for filename in filenames:
            for language, extensions in list(pending.items()):
                if filename.endswith(extensions):
                    found.add(language)
                    del pending[language]
            if not pending:
                break
        if not pending:
            break

    return [language for language, _ in LANGUAGE_EXTENSIONS if language in found]
