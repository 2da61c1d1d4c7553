"""specify-env - feature environment resolution for Spec-Driven Development."""

from .errors import (
    CheckpointError,
    DirtyWorkingTreeError,
    NoRepoRootError,
    SpecifyError,
    TemplateNotFoundError,
)
from .models import (
    ArtifactPaths,
    FeatureLocation,
    PrpResult,
    ResolvedEnvironment,
    ResolveOptions,
)
from .resolver import FeatureEnvironmentResolver
from .specify_logging import observability_hooks
from .templates import create_prp, materialize

__all__ = [
    "ArtifactPaths",
    "CheckpointError",
    "DirtyWorkingTreeError",
    "FeatureEnvironmentResolver",
    "FeatureLocation",
    "NoRepoRootError",
    "PrpResult",
    "ResolvedEnvironment",
    "ResolveOptions",
    "SpecifyError",
    "TemplateNotFoundError",
    "create_prp",
    "materialize",
    "observability_hooks",
]
