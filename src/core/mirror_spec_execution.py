"""Shared mirror-spec execution engine for CLI and SDK workflows.

This module maps validated mirror-spec entries to mirror requests so the CLI
and SDK run one declarative description the same way.
"""

from __future__ import annotations

from typing import Protocol

from core.cancellation import CancellationToken
from core.config import MirrorConfig
from core.errors import MirrorSpecError
from core.mirror_spec import MirrorSpec, MirrorSpecDefaults, MirrorSpecEntry, load_mirror_spec
from core.mirror_spec_fields import (
    optional_bool,
    optional_int,
    optional_string,
    optional_tristate,
    parse_repository_kind,
    parse_write_mode,
    required_string,
    string_list,
    string_mapping,
)
from core.types import SlicingPolicy
from mirror.application import MirrorRequest, MirrorRunResult, RepositorySpec
from mirror.mirror_types import ArtifactMirrorOptions


class MirrorRunner(Protocol):
    """Application API required by mirror-spec execution."""

    def run(
        self,
        request: MirrorRequest,
        cancel_token: CancellationToken | None = None,
    ) -> MirrorRunResult: ...


def execute_mirror_spec_file(
    runner: MirrorRunner,
    spec_file: str,
    config: MirrorConfig,
) -> tuple[MirrorRunResult, ...]:
    """Load and execute a mirror-spec file, one result per entry."""
    spec = load_mirror_spec(spec_file)
    return execute_mirror_spec(runner, spec, config)


def execute_mirror_spec(
    runner: MirrorRunner,
    spec: MirrorSpec,
    config: MirrorConfig,
) -> tuple[MirrorRunResult, ...]:
    """Execute every mirror entry in order.

    Entries run sequentially; a raised ``MirrorError`` stops the remaining
    entries.
    """
    return tuple(
        runner.run(build_mirror_request(entry, spec.defaults, config)) for entry in spec.mirrors
    )


def build_mirror_request(
    entry: MirrorSpecEntry,
    defaults: MirrorSpecDefaults,
    config: MirrorConfig,
) -> MirrorRequest:
    """Translate one mirror entry into a mirror request.

    Args:
        entry: Validated mirror entry.
        defaults: Spec-wide defaults.
        config: Environment configuration for unset values.

    Returns:
        Mirror request.

    Raises:
        MirrorSpecError: If a field has the wrong type or value.
    """
    args = entry.args
    sources = string_list(args, "sources")
    if not sources:
        raise MirrorSpecError(
            "Mirror-spec entry field 'sources' must list at least one source location."
        )
    kind = parse_repository_kind(args)
    destination = RepositorySpec(
        location=required_string(args, "destination"),
        kind=kind,
        append=parse_write_mode(args) == "append",
        name=optional_string(args, "destination_name"),
    )
    return MirrorRequest(
        sources=tuple(RepositorySpec(location=source, kind=kind) for source in sources),
        destinations=(destination,),
        root_specs=string_list(args, "roots"),
        policy=_build_policy(entry),
        options=_build_options(entry, defaults, config),
        baseline_location=optional_string(args, "baseline"),
        mirror_references=optional_bool(args, "references", default_value=True),
        mirror_log_path=optional_string(args, "log"),
        comparator_log_path=optional_string(args, "comparator_log"),
    )


def format_run_result(index: int, result: MirrorRunResult) -> str:
    """Render one run result as a printable summary line."""
    report = result.artifact_report
    fields = [
        f"mirror={index}",
        f"severity={result.severity.label}",
        f"closure={len(result.closure)}",
        f"artifact_tasks={len(report.tasks) if report is not None else '-'}",
        f"copied={report.count('copied') if report is not None else '-'}",
        f"errors={report.error_count if report is not None else '-'}",
        f"metadata_mirrored={str(result.metadata_mirrored).lower()}",
    ]
    return "\t".join(fields)


def _build_policy(entry: MirrorSpecEntry) -> SlicingPolicy:
    slicing = entry.slicing
    return SlicingPolicy(
        environment=string_mapping(slicing, "environment"),
        include_optional_dependencies=optional_bool(
            slicing, "include_optional", default_value=True
        ),
        everything_greedy=optional_bool(slicing, "everything_greedy", default_value=False),
        force_filter_to=optional_tristate(slicing, "force_filter"),
        consider_strict_dependency_only=optional_bool(
            slicing, "strict_only", default_value=False
        ),
        follow_only_filtered_requirements=optional_bool(
            slicing, "follow_only_filtered", default_value=False
        ),
        latest_version_only=optional_bool(slicing, "latest_version_only", default_value=False),
        install_time_like_resolution=optional_bool(
            slicing, "install_time_like", default_value=False
        ),
    )


def _build_options(
    entry: MirrorSpecEntry,
    defaults: MirrorSpecDefaults,
    config: MirrorConfig,
) -> ArtifactMirrorOptions:
    options = entry.options
    ignore_errors = optional_bool(options, "ignore_errors", default_value=False)
    return ArtifactMirrorOptions(
        raw=optional_bool(options, "raw", default_value=True),
        validate=optional_bool(options, "validate", default_value=False),
        compare=(
            optional_bool(options, "compare", default_value=False)
            or optional_string(entry.args, "baseline") is not None
        ),
        mirror_properties=optional_bool(options, "mirror_properties", default_value=False),
        failure_policy="best_effort" if ignore_errors else "fail_fast",
        comparator_id=(
            optional_string(options, "comparator") or defaults.comparator or config.comparator_id
        ),
        max_workers=optional_int(options, "workers") or defaults.workers or config.max_workers,
        chunk_size=config.chunk_size,
        verbose=optional_bool(options, "verbose", default_value=False),
    )
