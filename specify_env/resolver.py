"""Feature environment resolution.

Every command template starts the same way: find the repository root,
work out which feature is active, compute where that feature's artifacts
live, probe optional tools and pick a report location. This module is the
single implementation of that routine.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from . import config
from .config import Settings
from .errors import DirtyWorkingTreeError, NoRepoRootError
from .models import (
    DEFAULT_BRANCH,
    MANUAL_BACKUP,
    MODE_CLEANUP,
    MODE_TOOLS,
    MODE_VALIDATE,
    MODES,
    RESERVED_FEATURES,
    UNKNOWN_FEATURE,
    ArtifactPaths,
    FeatureLocation,
    ResolvedEnvironment,
    ResolveOptions,
)
from .probe import PathToolProbe, ToolProbe, detect_languages, probe_tools
from .specify_logging import (
    log_checkpoint_created,
    log_environment_resolved,
    log_operation,
    log_performance,
)
from .vcs import GitVersionControl, VersionControlPort

logger = logging.getLogger("specify.resolver")

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_REPORT_LAYOUT = {
    MODE_VALIDATE: ("validation", "validation-report", config.VALIDATION_CONFIG),
    MODE_CLEANUP: ("cleanup", "cleanup-report", config.CLEANUP_CONFIG),
}


def find_marker_root(start: Path) -> Optional[Path]:
    """Walk from ``start`` up to the filesystem root looking for a marker directory."""
    for base in (start, *start.parents):
        for marker in config.ROOT_MARKERS:
            if (base / marker).is_dir():
                return base
    return None


def find_repo_root(start: Path, vcs: VersionControlPort) -> Tuple[Path, bool]:
    """Return ``(repo_root, has_version_control)`` for ``start``.

    Raises:
        NoRepoRootError: neither git nor the marker walk found a root.
    """
    root = vcs.current_root(start)
    if root is not None:
        return root, True

    root = find_marker_root(start)
    if root is None:
        raise NoRepoRootError(start)
    return root, False


def identify_feature(
    repo_root: Path,
    has_version_control: bool,
    vcs: VersionControlPort,
    override: Optional[str],
) -> str:
    """Name of the active feature; never empty."""
    if has_version_control:
        return vcs.current_branch(repo_root) or DEFAULT_BRANCH
    return override or UNKNOWN_FEATURE


def latest_feature_dir(specs_dir: Path) -> Optional[Path]:
    """Most recent feature directory by name.

    Assumes zero-padded numeric prefixes (``001-``, ``002-``); other
    names still sort, just not chronologically.
    """
    if not specs_dir.is_dir():
        return None
    candidates = sorted(
        (path for path in specs_dir.iterdir() if path.is_dir()),
        key=lambda path: path.name,
        reverse=True,
    )
    return candidates[0] if candidates else None


def resolve_feature_dir(specs_dir: Path, feature: str) -> Optional[Path]:
    """Directory for ``feature`` under ``specs_dir``, falling back to the latest one."""
    if feature not in RESERVED_FEATURES:
        candidate = specs_dir / feature
        if candidate.is_dir():
            return candidate
    return latest_feature_dir(specs_dir)


class FeatureEnvironmentResolver:
    """Builds a fresh ``ResolvedEnvironment`` on every call.

    The collaborators are injectable: ``vcs`` answers repository questions,
    ``probe`` answers PATH questions and ``clock`` supplies the timestamp
    shared by report names and backup branches.
    """

    def __init__(
        self,
        vcs: Optional[VersionControlPort] = None,
        probe: Optional[ToolProbe] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.vcs = vcs or GitVersionControl()
        self.probe = probe or PathToolProbe()
        self.settings = settings or Settings.from_env()
        self.clock = clock or datetime.now

    def locate(self, start: Union[Path, str, None] = None) -> FeatureLocation:
        """Resolve root, feature and artifact paths without writing anything."""
        start_dir = Path(start).expanduser().resolve() if start else Path.cwd().resolve()

        repo_root, has_vcs = find_repo_root(start_dir, self.vcs)
        feature = identify_feature(repo_root, has_vcs, self.vcs, self.settings.feature_override)
        specs_dir = repo_root / config.SPECS_DIR
        feature_dir = resolve_feature_dir(specs_dir, feature)

        if feature_dir is None:
            logger.info(f"No feature directory under {specs_dir}; artifact paths unresolved")

        return FeatureLocation(
            repo_root=repo_root,
            has_version_control=has_vcs,
            current_feature=feature,
            specs_dir=specs_dir,
            feature_dir=feature_dir,
            artifact_paths=ArtifactPaths.for_feature_dir(feature_dir),
        )

    @log_performance("resolve")
    def resolve(
        self,
        mode: str,
        options: Union[ResolveOptions, Mapping[str, Any], None] = None,
        start: Union[Path, str, None] = None,
    ) -> ResolvedEnvironment:
        """Resolve the environment for ``mode`` (``validate`` or ``cleanup``).

        Raises:
            ValueError: unknown mode or invalid options.
            NoRepoRootError: no repository root above ``start``.
            DirtyWorkingTreeError: cleanup with uncommitted changes.
            CheckpointError: the backup branch could not be created.
        """
        if mode not in MODES:
            raise ValueError(f"mode must be one of {', '.join(MODES)}, got '{mode}'")
        if not isinstance(options, ResolveOptions):
            options = ResolveOptions.from_mapping(options)
        issues = options.validate()
        if issues:
            raise ValueError("; ".join(issues))

        with log_operation("resolve", mode=mode):
            location = self.locate(start)
            repo_root = location.repo_root
            now = self.clock()
            timestamp = now.strftime(TIMESTAMP_FORMAT)

            backup_branch = None
            if mode == MODE_CLEANUP:
                # Runs before any directory is created
                backup_branch = self._checkpoint(location, timestamp)

            report_dirname, report_prefix, config_name = _REPORT_LAYOUT[mode]
            report_dir = repo_root / config.SPECIFY_DIR / report_dirname
            report_dir.mkdir(parents=True, exist_ok=True)

            environment = ResolvedEnvironment(
                mode=mode,
                repo_root=repo_root,
                has_version_control=location.has_version_control,
                current_feature=location.current_feature,
                specs_dir=location.specs_dir,
                feature_dir=location.feature_dir,
                artifact_paths=location.artifact_paths,
                available_tools=probe_tools(self.probe, MODE_TOOLS[mode]),
                output_report_path=report_dir / f"{report_prefix}-{timestamp}.md",
                has_config=(repo_root / config.SPECIFY_DIR / config_name).is_file(),
                timestamp=timestamp,
                options=options,
                backup_branch=backup_branch,
            )

            if mode == MODE_CLEANUP:
                archive_dir = repo_root / config.ARCHIVE_DIR
                (archive_dir / now.strftime("%Y-%m")).mkdir(parents=True, exist_ok=True)
                environment.archive_dir = archive_dir
                environment.project_languages = detect_languages(repo_root)

        log_environment_resolved(
            mode,
            repo_root,
            environment.current_feature,
            has_version_control=environment.has_version_control,
            feature_dir=str(environment.feature_dir) if environment.feature_dir else None,
        )
        return environment

    def _checkpoint(self, location: FeatureLocation, timestamp: str) -> str:
        if not location.has_version_control:
            logger.warning("No version control detected; manual backup required before cleanup")
            return MANUAL_BACKUP

        if not self.vcs.is_clean(location.repo_root):
            raise DirtyWorkingTreeError(location.repo_root)

        branch = f"cleanup-backup-{timestamp}"
        self.vcs.create_checkpoint(location.repo_root, branch)
        log_checkpoint_created(location.repo_root, branch)
        return branch
