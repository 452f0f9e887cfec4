"""Mirror command wiring for the unitmirror CLI."""

from __future__ import annotations

import argparse
from typing import Any

from cli.slicing_arguments import (
    add_slicing_arguments,
    add_source_arguments,
    build_policy,
    build_root_specs,
)
from compare.comparators import supported_comparators
from core.status import Severity
from mirror.application import MirrorRequest, MirrorRunResult, RepositorySpec
from mirror.client import MirrorClient


def add_mirror_command(subparsers: Any) -> None:
    """Register mirror subcommand."""
    parser = subparsers.add_parser(
        "mirror",
        help="Mirror the closure of root units into a destination repository",
    )
    add_source_arguments(parser)
    parser.add_argument("--destination", required=True, help="Destination repository path")
    parser.add_argument(
        "--kind",
        choices=("metadata", "artifact", "both"),
        default="both",
        help="Repository kinds to read and mirror",
    )
    parser.add_argument("--destination-name", help="Display name for a created destination")
    parser.add_argument(
        "--write-mode",
        choices=("append", "clean"),
        default="append",
        help="Keep or empty existing destination content",
    )
    parser.add_argument(
        "--raw",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Copy artifact descriptors verbatim",
    )
    parser.add_argument(
        "--ignore-errors",
        action="store_true",
        help="Keep mirroring after artifact errors",
    )
    parser.add_argument("--verbose", action="store_true", help="Print every artifact task")
    parser.add_argument(
        "--compare",
        action="store_true",
        help="Compare content of artifacts already in the destination",
    )
    parser.add_argument(
        "--compare-against",
        metavar="BASELINE",
        help="Baseline repository compared with every mirrored artifact; implies --compare",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Verify checksums of copied and existing artifacts",
    )
    parser.add_argument(
        "--references",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Mirror repository references",
    )
    parser.add_argument(
        "--properties",
        action="store_true",
        help="Carry custom artifact properties forward with --no-raw",
    )
    parser.add_argument(
        "--comparator",
        choices=supported_comparators(),
        help="Content comparator; UNITMIRROR_COMPARATOR when omitted",
    )
    parser.add_argument("--log", help="Mirror log file (.jsonl/.json for JSON lines)")
    parser.add_argument("--comparator-log", help="Comparator log file")
    parser.add_argument(
        "--workers",
        type=int,
        help="Parallel artifact transfers; UNITMIRROR_MAX_WORKERS when omitted",
    )
    add_slicing_arguments(parser)


def run_mirror_command(client: MirrorClient, args: argparse.Namespace) -> int:
    """Execute a mirror run and print its summary."""
    result = client.run(build_mirror_request(client, args))
    for line in render_mirror_result(result, verbose=args.verbose):
        print(line)
    return 1 if result.severity == Severity.ERROR else 0


def build_mirror_request(client: MirrorClient, args: argparse.Namespace) -> MirrorRequest:
    """Translate parsed mirror flags into a mirror request."""
    overrides: dict[str, Any] = {
        "raw": args.raw,
        "validate": args.validate,
        "compare": args.compare or args.compare_against is not None,
        "mirror_properties": args.properties,
        "failure_policy": "best_effort" if args.ignore_errors else "fail_fast",
        "verbose": args.verbose,
    }
    if args.comparator:
        overrides["comparator_id"] = args.comparator
    if args.workers:
        overrides["max_workers"] = args.workers
    return MirrorRequest(
        sources=tuple(RepositorySpec(location=source, kind=args.kind) for source in args.source),
        destinations=(
            RepositorySpec(
                location=args.destination,
                kind=args.kind,
                append=args.write_mode == "append",
                name=args.destination_name,
            ),
        ),
        root_specs=build_root_specs(args),
        policy=build_policy(args),
        options=client.default_options(**overrides),
        baseline_location=args.compare_against,
        mirror_references=args.references,
        mirror_log_path=args.log,
        comparator_log_path=args.comparator_log,
    )


def render_mirror_result(result: MirrorRunResult, verbose: bool = False) -> tuple[str, ...]:
    """Render a run result as ``key=value`` lines plus problem rows."""
    lines = [
        f"severity={result.severity.label}",
        f"closure_size={len(result.closure)}",
    ]
    for entry in result.slice_status.entries:
        lines.append(f"slice_{entry.severity.label}={entry.code}\t{entry.subject or '-'}")
    report = result.artifact_report
    if report is not None:
        lines.append(f"artifact_tasks={len(report.tasks)}")
        for outcome in ("copied", "already_present", "already_equal"):
            lines.append(f"{outcome}={report.count(outcome)}")
        lines.append(f"errors={report.error_count}")
        lines.append(f"not_attempted={report.not_attempted}")
        for task in report.tasks:
            if verbose or task.severity > Severity.OK:
                lines.append(
                    f"task={task.key}\t{task.outcome}\t{task.severity.label}\t{task.message}"
                )
    lines.append(f"metadata_mirrored={str(result.metadata_mirrored).lower()}")
    return tuple(lines)
