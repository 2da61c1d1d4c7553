"""Settings and filesystem conventions for specify-env."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

FEATURE_ENV = "SPECIFY_FEATURE"
LOG_LEVEL_ENV = "SPECIFY_LOG_LEVEL"
LOG_FILE_ENV = "SPECIFY_LOG_FILE"

DEFAULT_LOG_LEVEL = "WARNING"

# Directories that mark a repository root when git is unavailable
ROOT_MARKERS = (".git", ".specify")

SPECIFY_DIR = ".specify"
SPECS_DIR = "specs"
PRPS_DIR = "prps"
ARCHIVE_DIR = ".archived"

VALIDATION_CONFIG = "validation-config.json"
CLEANUP_CONFIG = "cleanup-config.json"
PRP_TEMPLATE = Path(SPECIFY_DIR) / "templates" / "prp-template.md"


@dataclass(slots=True)
class Settings:
    """Process-environment settings, read once per invocation."""

    feature_override: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from ``SPECIFY_*`` environment variables."""
        feature = os.getenv(FEATURE_ENV) or None
        log_file = os.getenv(LOG_FILE_ENV)
        return cls(
            feature_override=feature,
            log_level=os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL,
            log_file=Path(log_file).expanduser() if log_file else None,
        )
