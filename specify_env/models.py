"""Data models for the feature environment resolver.

This module contains the option record a caller passes in, the resolved
environment handed back, and the two renderings of that environment:
a flat machine-readable record and ``KEY: value`` lines for humans.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

MODE_VALIDATE = "validate"
MODE_CLEANUP = "cleanup"
MODES = (MODE_VALIDATE, MODE_CLEANUP)

OUTPUT_HUMAN = "human"
OUTPUT_MACHINE = "machine"
OUTPUT_FORMATS = (OUTPUT_HUMAN, OUTPUT_MACHINE)

FOCUS_AREAS = ("requirements", "budget", "consistency", "constitution", "practices")
CLEANUP_TYPES = ("dead-code", "duplicates", "unused-files", "outdated-docs", "all")

# Branch names that never map to a specs/<name> directory
RESERVED_FEATURES = frozenset({"main", "master", "unknown"})
UNKNOWN_FEATURE = "unknown"
DEFAULT_BRANCH = "main"
MANUAL_BACKUP = "manual-backup-required"

MODE_TOOLS: Dict[str, Tuple[str, ...]] = {
    MODE_VALIDATE: ("python", "node", "markdownlint"),
    MODE_CLEANUP: ("python", "node", "vulture", "ts-prune", "pylint"),
}

UNRESOLVED = "(unresolved)"
MISSING_SUFFIX = " (missing)"


@dataclass(slots=True)
class ResolveOptions:
    """Caller options for a resolution."""

    output_format: str = OUTPUT_HUMAN
    focus_area: Optional[str] = None
    cleanup_type: str = "all"
    execute: bool = False
    archive_only: bool = False

    @property
    def dry_run(self) -> bool:
        return not self.execute

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ResolveOptions":
        """Create options from a mapping, ignoring keys it does not know.

        Flags accept booleans or ``true``/``false``-style strings; anything
        else raises ``ValueError``.
        """
        data = data or {}
        return cls(
            output_format=data.get("output_format") or OUTPUT_HUMAN,
            focus_area=data.get("focus_area") or None,
            cleanup_type=data.get("cleanup_type") or "all",
            execute=_as_bool(data.get("execute", False), "execute"),
            archive_only=_as_bool(data.get("archive_only", False), "archive_only"),
        )

    def validate(self) -> List[str]:
        """Validate the options and return any issues."""
        issues = []

        if self.output_format not in OUTPUT_FORMATS:
            issues.append(f"Invalid output format: {self.output_format}")
        if self.focus_area is not None and self.focus_area not in FOCUS_AREAS:
            issues.append(f"Invalid focus area: {self.focus_area}")
        if self.cleanup_type not in CLEANUP_TYPES:
            issues.append(f"Invalid cleanup type: {self.cleanup_type}")

        return issues


@dataclass(slots=True)
class ArtifactPaths:
    """Canonical per-feature artifact locations.

    Every field is None when no feature directory could be resolved.
    """

    spec: Optional[Path] = None
    plan: Optional[Path] = None
    tasks: Optional[Path] = None
    research: Optional[Path] = None
    data_model: Optional[Path] = None
    contracts: Optional[Path] = None
    quickstart: Optional[Path] = None

    # (attribute, artifact name, file name, machine key)
    LAYOUT = (
        ("spec", "specification", "spec.md", "FEATURE_SPEC"),
        ("plan", "plan", "plan.md", "IMPL_PLAN"),
        ("tasks", "tasks", "tasks.md", "TASKS"),
        ("research", "research", "research.md", "RESEARCH"),
        ("data_model", "data-model", "data-model.md", "DATA_MODEL"),
        ("contracts", "contracts", "contracts", "CONTRACTS_DIR"),
        ("quickstart", "quickstart", "quickstart.md", "QUICKSTART"),
    )

    @classmethod
    def for_feature_dir(cls, feature_dir: Optional[Path]) -> "ArtifactPaths":
        if feature_dir is None:
            return cls()
        return cls(**{attr: feature_dir / filename for attr, _, filename, _ in cls.LAYOUT})

    def by_name(self) -> Dict[str, Optional[Path]]:
        """Map artifact name (``specification``, ``data-model`` ...) to path."""
        return {name: getattr(self, attr) for attr, name, _, _ in self.LAYOUT}

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Convert to the machine-key representation."""
        return {key: _path_or_none(getattr(self, attr)) for attr, _, _, key in self.LAYOUT}

    def get_missing_paths(self) -> List[str]:
        """Get resolved artifact paths that do not exist on disk."""
        return [
            f"{name}: {path}"
            for name, path in self.by_name().items()
            if path is not None and not path.exists()
        ]


@dataclass(slots=True)
class FeatureLocation:
    """Where the repository is and which feature is active."""

    repo_root: Path
    has_version_control: bool
    current_feature: str
    specs_dir: Path
    feature_dir: Optional[Path]
    artifact_paths: ArtifactPaths


@dataclass(slots=True)
class ResolvedEnvironment:
    """Facts about the repository a command template is about to act on."""

    mode: str
    repo_root: Path
    has_version_control: bool
    current_feature: str
    specs_dir: Path
    feature_dir: Optional[Path]
    artifact_paths: ArtifactPaths
    available_tools: Dict[str, bool]
    output_report_path: Path
    has_config: bool
    timestamp: str
    options: ResolveOptions = field(default_factory=ResolveOptions)
    backup_branch: Optional[str] = None
    archive_dir: Optional[Path] = None
    project_languages: List[str] = field(default_factory=list)

    @property
    def report_key(self) -> str:
        return "VALIDATION_REPORT" if self.mode == MODE_VALIDATE else "CLEANUP_REPORT"

    def to_dict(self) -> Dict[str, Any]:
        """Flat machine-readable record; field set depends on the mode."""
        record: Dict[str, Any] = {
            "REPO_ROOT": str(self.repo_root),
            "CURRENT_BRANCH": self.current_feature,
        }

        if self.mode == MODE_VALIDATE:
            record["SPECS_DIR"] = str(self.specs_dir)
            record["FEATURE_DIR"] = _path_or_none(self.feature_dir)
            record.update(self.artifact_paths.to_dict())
            record[self.report_key] = str(self.output_report_path)
            record["HAS_GIT"] = self.has_version_control
            record["HAS_CONFIG"] = self.has_config
            record["FOCUS"] = self.options.focus_area or ""
        else:
            record["BACKUP_BRANCH"] = self.backup_branch
            record[self.report_key] = str(self.output_report_path)
            record["ARCHIVE_DIR"] = _path_or_none(self.archive_dir)
            record["HAS_GIT"] = self.has_version_control
            record["HAS_CONFIG"] = self.has_config
            record["CLEANUP_TYPE"] = self.options.cleanup_type
            record["DRY_RUN"] = self.options.dry_run
            record["ARCHIVE_ONLY"] = self.options.archive_only
            record["PROJECT_LANGUAGES"] = ",".join(self.project_languages)

        record["TOOLS"] = dict(self.available_tools)
        return record

    def to_lines(self) -> List[str]:
        """Human-readable rendering, one ``KEY: value`` per field."""
        record = self.to_dict()
        tools = record.pop("TOOLS")
        artifact_keys = {key for _, _, _, key in ArtifactPaths.LAYOUT}

        lines = []
        for key, value in record.items():
            if key == "PROJECT_LANGUAGES":
                continue
            if key in artifact_keys and value is not None and not Path(value).exists():
                lines.append(f"{key}: {value}{MISSING_SUFFIX}")
            else:
                lines.append(f"{key}: {format_value(value)}")

        lines.append("")
        if self.mode == MODE_CLEANUP:
            lines.append(f"PROJECT_LANGUAGES: {record['PROJECT_LANGUAGES']}")
            lines.append("")
            lines.append("Available cleanup tools:")
        else:
            lines.append("Available validation tools:")
        for name, present in tools.items():
            lines.append(f"  {name}: {format_value(present)}")

        if self.mode == MODE_CLEANUP:
            lines.append("")
            lines.extend(self._safety_banner())
        return lines

    def render(self) -> str:
        """Render according to ``options.output_format``."""
        if self.options.output_format == OUTPUT_MACHINE:
            return json.dumps(self.to_dict(), indent=2)
        return "\n".join(self.to_lines())

    def _safety_banner(self) -> List[str]:
        if self.has_version_control:
            return [
                f"SAFETY: Backup branch created: {self.backup_branch}",
                f"   Rollback command: git reset --hard {self.backup_branch}",
            ]
        return [
            "SAFETY: No version control detected, no backup branch was created.",
            "   Please create manual backup before proceeding",
        ]


@dataclass(slots=True)
class PrpResult:
    """Outcome of materializing the PRP template for a feature."""

    prp_file: Path
    feature_branch: str

    def to_dict(self) -> Dict[str, str]:
        return {"PRP_FILE": str(self.prp_file), "FEATURE_BRANCH": self.feature_branch}

    def to_lines(self) -> List[str]:
        return [f"{key}: {value}" for key, value in self.to_dict().items()]


def format_value(value: Any) -> str:
    """Render a record value the way the JSON output spells it."""
    if value is None:
        return UNRESOLVED
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_lines(lines: List[str]) -> Dict[str, str]:
    """Read ``KEY: value`` lines back into a mapping.

    Indented tool lines and free-text lines are skipped; the
    ``(missing)`` suffix is stripped so values compare with the
    machine record.
    """
    parsed: Dict[str, str] = {}
    for line in lines:
        if not line or line.startswith(" ") or ": " not in line:
            continue
        key, value = line.split(": ", 1)
        if not key.isupper() or " " in key:
            continue
        if value.endswith(MISSING_SUFFIX):
            value = value[: -len(MISSING_SUFFIX)]
        parsed[key] = value
    return parsed


def _path_or_none(path: Optional[Path]) -> Optional[str]:
    return str(path) if path is not None else None


_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no", ""})


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")
