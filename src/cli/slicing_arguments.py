"""Source, root and slicing-policy arguments shared by CLI commands."""

from __future__ import annotations

import argparse

from core.errors import MirrorConfigError
from core.types import SlicingPolicy
from slicing.roots import split_root_list


def add_source_arguments(parser: argparse.ArgumentParser) -> None:
    """Register repeatable sources and the root list."""
    parser.add_argument(
        "--source",
        action="append",
        required=True,
        help="Source repository path or file:// URI (repeatable)",
    )
    parser.add_argument(
        "--roots",
        help="Comma-separated root units as id or id/range, e.g. 'app,lib/[1.0,2.0)'",
    )


def add_slicing_arguments(parser: argparse.ArgumentParser) -> None:
    """Register slicing-policy flags."""
    parser.add_argument(
        "--env",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Filter environment property (repeatable); filters are ignored when unset",
    )
    parser.add_argument(
        "--include-optional",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Follow optional requirements",
    )
    parser.add_argument(
        "--everything-greedy",
        action="store_true",
        help="Follow every candidate of every requirement",
    )
    parser.add_argument(
        "--force-filter",
        choices=("true", "false"),
        help="Evaluate every filter to this value instead of against --env",
    )
    parser.add_argument(
        "--strict-only",
        action="store_true",
        help="Follow only requirements with an exact version range",
    )
    parser.add_argument(
        "--follow-only-filtered",
        action="store_true",
        help="Follow only requirements that declare a filter",
    )
    parser.add_argument(
        "--latest-version-only",
        action="store_true",
        help="Keep only the highest version of each unit id",
    )


def build_root_specs(args: argparse.Namespace) -> tuple[str, ...]:
    """Split the ``--roots`` list, keeping range brackets intact."""
    return tuple(split_root_list(args.roots))


def build_policy(args: argparse.Namespace) -> SlicingPolicy:
    """Build a slicing policy from parsed flags.

    Raises:
        MirrorConfigError: If an ``--env`` value is not ``KEY=VALUE``.
    """
    force_filter = None if args.force_filter is None else args.force_filter == "true"
    return SlicingPolicy(
        environment=_parse_environment(args.env),
        include_optional_dependencies=args.include_optional,
        everything_greedy=args.everything_greedy,
        force_filter_to=force_filter,
        consider_strict_dependency_only=args.strict_only,
        follow_only_filtered_requirements=args.follow_only_filtered,
        latest_version_only=args.latest_version_only,
    )


def _parse_environment(pairs: list[str]) -> dict[str, str] | None:
    if not pairs:
        return None
    environment: dict[str, str] = {}
    for pair in pairs:
        key, separator, value = pair.partition("=")
        if not separator or not key.strip():
            raise MirrorConfigError(
                f"Invalid --env value '{pair}': expected KEY=VALUE, e.g. --env os=linux."
            )
        environment[key.strip()] = value.strip()
    return environment
