"""unitmirror CLI entry points.
This module exposes the mirror, slice and run-spec commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from typing import Any, Sequence

from cli.mirror_command import add_mirror_command, run_mirror_command
from cli.run_spec_command import add_run_spec_command, run_run_spec_command
from cli.slicing_arguments import (
    add_slicing_arguments,
    add_source_arguments,
    build_policy,
    build_root_specs,
)
from core.errors import MirrorError
from core.status import Severity
from mirror.client import MirrorClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="unitmirror",
        description="Slice unit repositories and mirror their artifacts",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_mirror_command(subparsers)
    _add_slice_command(subparsers)
    add_run_spec_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the unitmirror CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = MirrorClient()
        if args.command == "mirror":
            return run_mirror_command(client, args)
        if args.command == "slice":
            return _run_slice_command(client, args)
        if args.command == "run-spec":
            return run_run_spec_command(client, args)
    except MirrorError as error:
        print(f"mirror_error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_slice_command(client: MirrorClient, args: argparse.Namespace) -> int:
    """Handle slice command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    result = client.slice(
        sources=args.source,
        root_specs=build_root_specs(args),
        policy=build_policy(args),
    )
    for unit in result.closure:
        print(f"{unit.unit_id}\t{unit.version}")
    for entry in result.status.entries:
        print(f"{entry.severity.label}={entry.code}\t{entry.subject or '-'}\t{entry.message}")
    return 1 if result.status.severity == Severity.ERROR else 0


def _add_slice_command(subparsers: Any) -> None:
    """Register slice subcommand."""
    parser = subparsers.add_parser("slice", help="Print the closure of root units")
    add_source_arguments(parser)
    add_slicing_arguments(parser)
