"""Template materialization for the Product Requirements Prompt (PRP).

Templates carry ``{{NAME}}`` placeholders. Substitution is literal and
case-sensitive; placeholders nobody supplied a value for are left in the
output as they are.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from . import config
from .errors import TemplateNotFoundError
from .models import MISSING_SUFFIX, FeatureLocation, PrpResult
from .resolver import FeatureEnvironmentResolver
from .specify_logging import log_operation, log_prp_materialized

logger = logging.getLogger("specify.templates")

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")

# Placeholder -> (artifact attribute, label used when unresolved)
PRP_PATH_PLACEHOLDERS = (
    ("SPEC_PATH", "spec", "Specification"),
    ("PLAN_PATH", "plan", "Implementation plan"),
    ("TASKS_PATH", "tasks", "Tasks backlog"),
    ("RESEARCH_PATH", "research", "Research"),
    ("DATA_MODEL_PATH", "data_model", "Data model"),
    ("CONTRACTS_PATH", "contracts", "Contracts directory"),
    ("QUICKSTART_PATH", "quickstart", "Quickstart guide"),
)


def materialize(template: str, replacements: Mapping[str, str]) -> str:
    """Replace each ``{{KEY}}`` in ``template`` with ``replacements[KEY]``.

    Keys are matched literally, so any name works (``{{DATA-MODEL}}``,
    ``{{a.b}}``). One pass over the template: inserted values are never
    scanned again.
    """
    if not replacements:
        return template
    pattern = re.compile("|".join(re.escape("{{%s}}" % key) for key in replacements))
    return pattern.sub(lambda match: str(replacements[match.group(0)[2:-2]]), template)


def find_placeholders(content: str) -> List[str]:
    """Names of the ``{{NAME}}`` placeholders in ``content``, in order of first use."""
    seen: Dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(content):
        seen.setdefault(match.group(1), None)
    return list(seen)


def describe_path(path: Optional[Path], label: str) -> str:
    """Render an artifact path for a template.

    Unresolved paths become ``"<label> missing"``, paths that do not exist
    on disk get a ``" (missing)"`` suffix.
    """
    if path is None:
        return f"{label} missing"
    if path.is_file() or path.is_dir():
        return str(path)
    return f"{path}{MISSING_SUFFIX}"


def prp_replacements(location: FeatureLocation, current_date: str) -> Dict[str, str]:
    """Placeholder values for the PRP template."""
    values = {
        "FEATURE_BRANCH": location.current_feature,
        "CURRENT_DATE": current_date,
    }
    for placeholder, attr, label in PRP_PATH_PLACEHOLDERS:
        values[placeholder] = describe_path(getattr(location.artifact_paths, attr), label)
    return values


def create_prp(
    resolver: FeatureEnvironmentResolver,
    start: Union[Path, str, None] = None,
) -> PrpResult:
    """Write ``prps/<feature>.md`` from the repository's PRP template.

    An existing PRP for the feature is overwritten.

    Raises:
        NoRepoRootError: no repository root above ``start``.
        TemplateNotFoundError: ``.specify/templates/prp-template.md`` is absent.
    """
    location = resolver.locate(start)
    template_path = location.repo_root / config.PRP_TEMPLATE
    if not template_path.is_file():
        raise TemplateNotFoundError(template_path)

    prp_file = location.repo_root / config.PRPS_DIR / f"{location.current_feature}.md"

    with log_operation("create_prp", feature=location.current_feature, prp_file=str(prp_file)):
        template = template_path.read_text(encoding="utf-8")
        current_date = resolver.clock().strftime("%Y-%m-%d")
        content = materialize(template, prp_replacements(location, current_date))

        leftover = find_placeholders(content)
        if leftover:
            logger.warning(f"Unreplaced placeholders in {prp_file.name}: {', '.join(leftover)}")

        prp_file.parent.mkdir(parents=True, exist_ok=True)
        prp_file.write_text(content, encoding="utf-8")

    log_prp_materialized(prp_file, location.current_feature, unreplaced=len(leftover))
    return PrpResult(prp_file=prp_file, feature_branch=location.current_feature)
