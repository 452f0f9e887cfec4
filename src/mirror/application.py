"""Mirror run orchestration.

A run opens every source, destination, baseline and log inside one
``ExitStack``, selects root units, resolves the closure, mirrors its
artifacts and finally publishes its metadata. Everything opened is closed on
every exit path.
"""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Sequence

from core.cancellation import CancellationToken
from core.constants import ARTIFACT_MIRROR_LOG_ROOT
from core.errors import MirrorConfigError, MirrorRepositoryError
from core.logging_config import get_logger
from core.status import Severity, Status, StatusCollector
from core.types import ArtifactKey, RepositoryKind, SlicingPolicy, Unit
from mirror.artifact_mirror import ArtifactMirror
from mirror.metadata_mirror import MetadataMirrorResult, mirror_metadata
from mirror.mirror_log import MirrorLog, StructuredMirrorLog, open_mirror_log
from mirror.mirror_types import ArtifactMirrorOptions, MirrorReport
from slicing.closure import Closure
from slicing.planner import ExternalPlanner, resolve_with_planner
from slicing.roots import parse_root_spec
from slicing.slicer import Slicer
from store.composite import CompositeArtifactRepository, CompositeMetadataRepository
from store.provider import RepositoryProvider
from store.repository import ArtifactRepository, MetadataRepository

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RepositorySpec:
    """One repository location taking part in a run.

    Attributes:
        location: Path, ``file://`` URI or ``mem:`` name.
        kind: Which repository kinds live at the location.
        append: Keep existing destination content; ``False`` cleans it.
        name: Optional display name for created destinations.
    """

    location: str
    kind: RepositoryKind = "both"
    append: bool = True
    name: str | None = None

    @property
    def has_metadata(self) -> bool:
        """Return whether the location holds a metadata repository."""
        return self.kind in ("metadata", "both")

    @property
    def has_artifacts(self) -> bool:
        """Return whether the location holds an artifact repository."""
        return self.kind in ("artifact", "both")


@dataclass(frozen=True)
class MirrorRequest:
    """Everything one mirror run needs."""

    sources: tuple[RepositorySpec, ...]
    destinations: tuple[RepositorySpec, ...]
    root_specs: tuple[str, ...] = ()
    policy: SlicingPolicy = field(default_factory=SlicingPolicy)
    options: ArtifactMirrorOptions = field(default_factory=ArtifactMirrorOptions)
    baseline_location: str | None = None
    mirror_references: bool = True
    mirror_log_path: str | None = None
    comparator_log_path: str | None = None


@dataclass(frozen=True)
class MirrorRunResult:
    """Outcome of a mirror run.

    Attributes:
        severity: Maximum of slice status and artifact report severity.
        slice_status: Root selection and slicing status.
        closure: Resolved closure.
        artifact_report: Artifact mirror report, ``None`` without artifact destination.
        metadata_result: Metadata counts, ``None`` when metadata was not mirrored.
    """

    severity: Severity
    slice_status: Status
    closure: Closure
    artifact_report: MirrorReport | None = None
    metadata_result: MetadataMirrorResult | None = None

    @property
    def metadata_mirrored(self) -> bool:
        """Return whether metadata reached the destination."""
        return self.metadata_result is not None


@dataclass
class _OpenedRepositories:
    source_metadata: CompositeMetadataRepository
    source_artifacts: CompositeArtifactRepository
    metadata_source_count: int
    artifact_source_count: int
    destination_metadata: MetadataRepository | None
    destination_artifacts: ArtifactRepository | None
    baseline: ArtifactRepository | None


class MirrorApplication:
    """Run slicing plus artifact and metadata mirroring end to end."""

    def __init__(
        self,
        provider: RepositoryProvider,
        planner: ExternalPlanner | None = None,
    ) -> None:
        self._provider = provider
        self._planner = planner

    def run(
        self,
        request: MirrorRequest,
        cancel_token: CancellationToken | None = None,
    ) -> MirrorRunResult:
        """Execute one mirror run.

        Args:
            request: Run configuration.
            cancel_token: Optional cooperative cancellation token.

        Returns:
            Run result with slice status and artifact report.

        Raises:
            MirrorConfigError: If the request is inconsistent.
            MirrorRepositoryError: If a source or destination cannot be used.
            MirrorSlicingError: If closure resolution fails.
            MirrorCancelledError: If cancelled while slicing.
        """
        with ExitStack() as stack:
            mirror_log = self._open_log(
                stack, request.mirror_log_path, ARTIFACT_MIRROR_LOG_ROOT
            )
            comparator_log = self._open_log(
                stack, request.comparator_log_path, request.options.comparator_id
            )
            repositories = self._open_repositories(stack, request)
            _validate(repositories)
            repositories.baseline = self._open_baseline(stack, request.baseline_location)
            return self._execute(
                request, repositories, mirror_log, comparator_log, cancel_token
            )

    def _execute(
        self,
        request: MirrorRequest,
        repositories: _OpenedRepositories,
        mirror_log: MirrorLog,
        comparator_log: MirrorLog | None,
        cancel_token: CancellationToken | None,
    ) -> MirrorRunResult:
        status = StatusCollector()
        roots = _select_roots(request.root_specs, repositories, status)
        closure = self._resolve(roots, request.policy, repositories, status, cancel_token)
        slice_status = status.freeze()
        if slice_status.severity > Severity.OK:
            mirror_log.log_status(slice_status)
        report = None
        if repositories.destination_artifacts is not None:
            report = ArtifactMirror(
                source=repositories.source_artifacts,
                destination=repositories.destination_artifacts,
                options=request.options,
                baseline=repositories.baseline,
                mirror_log=mirror_log,
                comparator_log=comparator_log,
                cancel_token=cancel_token,
            ).run(_artifact_keys(closure, repositories))
            if report.severity == Severity.ERROR and (
                request.options.fail_on_error or report.cancelled
            ):
                _LOGGER.warning(
                    "metadata_mirror_skipped",
                    reason="artifact mirror reported errors",
                    errors=report.error_count,
                )
                return _finish(slice_status, closure, report, None)
        metadata_result = None
        if repositories.destination_metadata is not None:
            metadata_result = mirror_metadata(
                closure,
                repositories.source_metadata,
                repositories.destination_metadata,
                mirror_references=request.mirror_references,
            )
        return _finish(slice_status, closure, report, metadata_result)

    def _resolve(
        self,
        roots: list[Unit],
        policy: SlicingPolicy,
        repositories: _OpenedRepositories,
        status: StatusCollector,
        cancel_token: CancellationToken | None,
    ) -> Closure:
        if policy.install_time_like_resolution:
            if self._planner is None:
                raise MirrorConfigError(
                    "Install-time-like resolution requested but no planner is configured. "
                    "Pass a planner to MirrorApplication or disable the option."
                )
            closure = resolve_with_planner(self._planner, roots, policy)
            if policy.latest_version_only:
                closure = closure.latest_only()
            return closure
        slicer = Slicer(repositories.source_metadata.lookup, policy, cancel_token)
        result = slicer.slice(roots)
        status.extend(result.status)
        return result.closure

    def _open_repositories(
        self, stack: ExitStack, request: MirrorRequest
    ) -> _OpenedRepositories:
        metadata_sources: list[MetadataRepository] = []
        artifact_sources: list[ArtifactRepository] = []
        for source in request.sources:
            if source.has_metadata:
                repository = self._provider.open_metadata_source(source.location)
                stack.callback(repository.close)
                metadata_sources.append(repository)
            if source.has_artifacts:
                artifact_repository = self._provider.open_artifact_source(source.location)
                stack.callback(artifact_repository.close)
                artifact_sources.append(artifact_repository)
        destination_metadata = None
        destination_artifacts = None
        for destination in request.destinations:
            if destination.has_metadata:
                if destination_metadata is not None:
                    raise MirrorConfigError(
                        "More than one metadata destination configured. "
                        "Mirror into one metadata destination per run."
                    )
                destination_metadata = self._provider.open_metadata_destination(
                    destination.location, append=destination.append, name=destination.name
                )
                stack.callback(destination_metadata.close)
            if destination.has_artifacts:
                if destination_artifacts is not None:
                    raise MirrorConfigError(
                        "More than one artifact destination configured. "
                        "Mirror into one artifact destination per run."
                    )
                destination_artifacts = self._provider.open_artifact_destination(
                    destination.location, append=destination.append, name=destination.name
                )
                stack.callback(destination_artifacts.close)
        return _OpenedRepositories(
            source_metadata=CompositeMetadataRepository(metadata_sources),
            source_artifacts=CompositeArtifactRepository(artifact_sources),
            metadata_source_count=len(metadata_sources),
            artifact_source_count=len(artifact_sources),
            destination_metadata=destination_metadata,
            destination_artifacts=destination_artifacts,
            baseline=None,
        )

    def _open_baseline(self, stack: ExitStack, location: str | None) -> ArtifactRepository | None:
        if location is None:
            return None
        try:
            baseline = self._provider.open_artifact_source(location)
        except MirrorRepositoryError as error:
            _LOGGER.warning("baseline_unavailable", location=location, error=str(error))
            return None
        stack.callback(baseline.close)
        return baseline

    def _open_log(self, stack: ExitStack, path: str | None, root: str) -> MirrorLog:
        if path is None:
            return StructuredMirrorLog(root)
        log = open_mirror_log(path, root)
        stack.callback(log.close)
        return log


def _validate(repositories: _OpenedRepositories) -> None:
    if repositories.metadata_source_count == 0 and repositories.artifact_source_count == 0:
        raise MirrorConfigError("No source repositories configured. Add at least one source.")
    if repositories.destination_artifacts is not None and repositories.artifact_source_count == 0:
        raise MirrorConfigError(
            "An artifact destination is configured but no artifact source. "
            "Add an artifact source or change the destination kind."
        )
    if repositories.destination_metadata is not None and repositories.metadata_source_count == 0:
        raise MirrorConfigError(
            "A metadata destination is configured but no metadata source. "
            "Add a metadata source or change the destination kind."
        )


def _select_roots(
    root_specs: Sequence[str],
    repositories: _OpenedRepositories,
    status: StatusCollector,
) -> list[Unit]:
    source = repositories.source_metadata
    if not root_specs:
        all_units = source.query()
        if not all_units and repositories.destination_metadata is not None:
            raise MirrorConfigError(
                "No units to mirror: the metadata sources are empty. "
                "Check the source locations or mirror artifacts only."
            )
        return all_units
    roots: list[Unit] = []
    for spec in root_specs:
        matches = source.lookup(parse_root_spec(spec))
        if not matches:
            status.add(
                Severity.WARNING,
                "unmatched_root",
                f"No unit in the sources matches root '{spec}'.",
                subject=spec,
            )
        roots.extend(matches)
    return roots


def _artifact_keys(
    closure: Closure, repositories: _OpenedRepositories
) -> list[ArtifactKey] | None:
    if repositories.metadata_source_count == 0:
        return None
    return closure.artifact_keys()


def _finish(
    slice_status: Status,
    closure: Closure,
    report: MirrorReport | None,
    metadata_result: MetadataMirrorResult | None,
) -> MirrorRunResult:
    severity = slice_status.severity
    if report is not None:
        severity = max(severity, report.severity)
    _LOGGER.info(
        "mirror_run_finished",
        severity=severity.label,
        closure_size=len(closure),
        artifact_tasks=len(report.tasks) if report is not None else 0,
        metadata_mirrored=metadata_result is not None,
    )
    return MirrorRunResult(
        severity=severity,
        slice_status=slice_status,
        closure=closure,
        artifact_report=report,
        metadata_result=metadata_result,
    )
