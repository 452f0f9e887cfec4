"""Run-spec CLI command wiring.

This module registers the run-spec subcommand and delegates execution to the
shared mirror-spec engine used by CLI and SDK entry points.
"""

from __future__ import annotations

import argparse
from typing import Any

from core.mirror_spec_execution import format_run_result
from core.status import Severity
from mirror.client import MirrorClient


def add_run_spec_command(subparsers: Any) -> None:
    """Register run-spec subcommand."""
    parser = subparsers.add_parser(
        "run-spec",
        help="Run the mirrors declared in a YAML mirror spec",
    )
    parser.add_argument("spec_file", help="Path to YAML mirror-spec file")


def run_run_spec_command(client: MirrorClient, args: argparse.Namespace) -> int:
    """Handle run-spec command invocation."""
    results = client.run_spec(args.spec_file)
    for index, result in enumerate(results, start=1):
        print(format_run_result(index, result))
    return 1 if any(result.severity == Severity.ERROR for result in results) else 0
