"""Command-line entry points: ``run-validation``, ``run-cleanup`` and ``create-prp``.

Each prints its result on stdout, either as JSON (``--json``) or as
``KEY: value`` lines. Fatal errors go to stderr with exit code 1.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Callable, List, Optional

from .config import Settings
from .errors import SpecifyError
from .models import (
    CLEANUP_TYPES,
    FOCUS_AREAS,
    MODE_CLEANUP,
    MODE_VALIDATE,
    OUTPUT_HUMAN,
    OUTPUT_MACHINE,
    ResolveOptions,
)
from .resolver import FeatureEnvironmentResolver
from .specify_logging import log_error_with_context, setup_logging
from .templates import create_prp


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit code 1."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_validation_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="run-validation",
        description="Resolve the feature environment for a validation run.",
    )
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    parser.add_argument(
        "--focus",
        choices=FOCUS_AREAS,
        metavar="<phase>",
        help=f"Focus on specific validation phase ({'|'.join(FOCUS_AREAS)})",
    )
    return parser


def build_cleanup_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="run-cleanup",
        description="Resolve the environment for a cleanup run and create a backup branch.",
    )
    parser.add_argument("--json", action="store_true", help="Output in JSON format")
    parser.add_argument(
        "--type",
        dest="cleanup_type",
        choices=CLEANUP_TYPES,
        default="all",
        metavar="<type>",
        help=f"Cleanup type ({'|'.join(CLEANUP_TYPES)})",
    )
    parser.add_argument("--execute", action="store_true", help="Execute cleanup (default is dry-run)")
    parser.add_argument("--archive-only", action="store_true", help="Move to archive instead of deleting")
    return parser


def build_prp_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="create-prp",
        description="Generate (or refresh) the Product Requirements Prompt for the current feature.",
    )
    parser.add_argument("--json", action="store_true", help="Output machine-readable metadata")
    return parser


def _run(action: Callable[[FeatureEnvironmentResolver], str], operation: str) -> int:
    settings = Settings.from_env()
    try:
        setup_logging(settings.log_level, settings.log_file)
    except (ValueError, OSError) as e:
        print(f"ERROR: Invalid logging configuration: {e}", file=sys.stderr)
        return 1

    resolver = FeatureEnvironmentResolver(settings=settings)

    try:
        output = action(resolver)
    except SpecifyError as e:
        log_error_with_context(e, {"operation": operation})
        print(f"ERROR: {e}", file=sys.stderr)
        return e.exit_code

    print(output)
    return 0


def _output_format(as_json: bool) -> str:
    return OUTPUT_MACHINE if as_json else OUTPUT_HUMAN


def validation_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``run-validation``."""
    args = build_validation_parser().parse_args(argv)
    options = ResolveOptions(output_format=_output_format(args.json), focus_area=args.focus)
    return _run(lambda resolver: resolver.resolve(MODE_VALIDATE, options).render(), "run_validation")


def cleanup_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``run-cleanup``."""
    args = build_cleanup_parser().parse_args(argv)
    options = ResolveOptions(
        output_format=_output_format(args.json),
        cleanup_type=args.cleanup_type,
        execute=args.execute,
        archive_only=args.archive_only,
    )
    return _run(lambda resolver: resolver.resolve(MODE_CLEANUP, options).render(), "run_cleanup")


def create_prp_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``create-prp``."""
    args = build_prp_parser().parse_args(argv)

    def action(resolver: FeatureEnvironmentResolver) -> str:
        result = create_prp(resolver)
        if args.json:
            return json.dumps(result.to_dict())
        return "\n".join(result.to_lines())

    return _run(action, "create_prp")
