"""Parallel artifact mirroring with integrity checks.

Each selected artifact key becomes one task that either copies bytes from the
source into the destination through a staged sink or classifies the copy that
is already there. Tasks run on a thread pool; under the ``fail_fast`` policy
the first task error stops tasks that have not started yet.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import threading
from typing import Sequence

from compare.artifact_comparison import compare_artifact
from compare.comparators import CompareResult, new_hasher, resolve_comparator
from core.cancellation import CancellationToken
from core.constants import CHECKSUM_PROPERTY_PREFIX, DEFAULT_CHECKSUM_ALGORITHM, SIZE_PROPERTY
from core.errors import MirrorError
from core.logging_config import get_logger
from core.status import Severity, StatusCollector, StatusEntry
from core.types import ArtifactDescriptor, ArtifactKey
from mirror.mirror_log import MirrorLog
from mirror.mirror_types import (
    OUTCOME_SEVERITIES,
    ArtifactMirrorOptions,
    BaselineOutcome,
    MirrorOutcome,
    MirrorReport,
    MirrorTask,
)
from store.repository import ArtifactRepository

_LOGGER = get_logger(__name__)

_CHECKSUM_PROPERTY = CHECKSUM_PROPERTY_PREFIX + DEFAULT_CHECKSUM_ALGORITHM
_COMPARE_SEVERITIES: dict[str, Severity] = {
    "equal": Severity.OK,
    "different": Severity.WARNING,
    "error": Severity.ERROR,
}


class ArtifactMirror:
    """Copy artifacts between repositories and report per-artifact outcomes.

    Args:
        source: Artifact source, possibly a composite.
        destination: Artifact destination.
        options: Mirror options; defaults when omitted.
        baseline: Optional reference repository compared after each task.
        mirror_log: Optional sink receiving every task outcome.
        comparator_log: Optional sink receiving every comparison result.
        cancel_token: Optional cooperative cancellation token.

    Raises:
        MirrorConfigError: If the configured comparator is unknown.
    """

    def __init__(
        self,
        source: ArtifactRepository,
        destination: ArtifactRepository,
        options: ArtifactMirrorOptions | None = None,
        baseline: ArtifactRepository | None = None,
        mirror_log: MirrorLog | None = None,
        comparator_log: MirrorLog | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self._source = source
        self._destination = destination
        self._options = options or ArtifactMirrorOptions()
        self._baseline = baseline
        self._mirror_log = mirror_log
        self._comparator_log = comparator_log
        self._cancel_token = cancel_token
        self._comparator = resolve_comparator(
            self._options.comparator_id, self._options.chunk_size
        )
        self._abort = threading.Event()
        self._run_status = StatusCollector()

    def run(self, keys: Sequence[ArtifactKey] | None = None) -> MirrorReport:
        """Mirror selected artifacts.

        Args:
            keys: Keys to mirror; every source artifact when ``None``.
                Duplicates are mirrored once.

        Returns:
            Report with one task per attempted key in selection order.
        """
        selected = self._select_keys(keys)
        self._abort.clear()
        self._run_status = StatusCollector()
        if not selected:
            _LOGGER.info("artifact_mirror_finished", selected=0, attempted=0, severity="ok")
            return MirrorReport(tasks=())
        worker_count = max(1, min(self._options.max_workers, len(selected)))
        with ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="artifact-mirror"
        ) as executor:
            futures = [executor.submit(self._run_task, key) for key in selected]
            results = [future.result() for future in futures]
        tasks = tuple(task for task in results if task is not None)
        not_attempted = len(results) - len(tasks)
        aborted = self._abort.is_set()
        cancelled = (
            self._cancel_token is not None
            and self._cancel_token.cancelled
            and not_attempted > 0
            and not aborted
        )
        if aborted:
            self._record(
                Severity.ERROR,
                "mirror_aborted",
                f"Mirror stopped after the first failure; {not_attempted} artifact(s) "
                "were not attempted. Use the best_effort policy to continue past errors.",
            )
        if cancelled:
            reason = self._cancel_token.reason if self._cancel_token else None
            self._record(
                Severity.ERROR,
                "mirror_cancelled",
                f"Mirror cancelled ({reason or 'no reason given'}); "
                f"{not_attempted} artifact(s) were not attempted.",
            )
        report = MirrorReport(
            tasks=tasks,
            status=self._run_status.freeze(),
            aborted=aborted,
            cancelled=cancelled,
            not_attempted=not_attempted,
        )
        _LOGGER.info(
            "artifact_mirror_finished",
            selected=len(selected),
            attempted=len(tasks),
            copied=report.count("copied"),
            errors=report.error_count,
            not_attempted=not_attempted,
            severity=report.severity.label,
        )
        return report

    def _select_keys(self, keys: Sequence[ArtifactKey] | None) -> list[ArtifactKey]:
        if keys is None:
            keys = [descriptor.key for descriptor in self._source.descriptors()]
        return list(dict.fromkeys(keys))

    def _run_task(self, key: ArtifactKey) -> MirrorTask | None:
        if self._abort.is_set():
            return None
        if self._cancel_token is not None and self._cancel_token.cancelled:
            return None
        try:
            task = self._mirror_key(key)
        except Exception as error:  # recorded as a task outcome
            task = self._build_task(
                key, "transfer_error", f"Unexpected failure mirroring {key}: {error}"
            )
        if task.severity == Severity.ERROR and self._options.fail_on_error:
            self._abort.set()
        self._log_task(task)
        return task

    def _mirror_key(self, key: ArtifactKey) -> MirrorTask:
        source_descriptor = self._source.get_descriptor(key)
        if source_descriptor is None:
            return self._build_task(
                key, "transfer_error", f"Artifact {key} not found in {self._source.location}."
            )
        destination_descriptor = self._destination.get_descriptor(key)
        if destination_descriptor is not None:
            outcome, message, digest = self._check_existing(
                key, source_descriptor, destination_descriptor
            )
        else:
            outcome, message, digest = self._transfer(key, source_descriptor)
        baseline = self._compare_baseline(key, outcome)
        return self._build_task(key, outcome, message, baseline, digest)

    def _check_existing(
        self,
        key: ArtifactKey,
        source_descriptor: ArtifactDescriptor,
        destination_descriptor: ArtifactDescriptor,
    ) -> tuple[MirrorOutcome, str, str | None]:
        if self._options.compare:
            result = self._compare(key, self._destination)
            if result.outcome == "equal":
                return "already_equal", f"{key} already present and equal", result.digest_b
            if result.outcome == "different":
                return (
                    "comparator_mismatch",
                    f"{key} differs from destination copy ({result.reason}); kept destination",
                    result.digest_b,
                )
            return "comparator_error", f"Cannot compare {key}: {result.reason}", None
        if self._options.validate:
            declared = source_descriptor.properties.get(_CHECKSUM_PROPERTY)
            existing = destination_descriptor.properties.get(_CHECKSUM_PROPERTY)
            if declared and existing and declared != existing:
                return (
                    "verification_failed",
                    f"{key} destination checksum {existing} does not match source {declared}",
                    existing,
                )
        return "already_present", f"{key} already present", None

    def _transfer(
        self, key: ArtifactKey, source_descriptor: ArtifactDescriptor
    ) -> tuple[MirrorOutcome, str, str | None]:
        hasher = new_hasher(DEFAULT_CHECKSUM_ALGORITHM)
        size = 0
        try:
            with self._source.read(key) as stream, self._destination.write(key) as sink:
                while True:
                    chunk = stream.read(self._options.chunk_size)
                    if not chunk:
                        break
                    hasher.update(chunk)
                    size += len(chunk)
                    sink.write(chunk)
                digest = hasher.hexdigest()
                declared = source_descriptor.properties.get(_CHECKSUM_PROPERTY)
                if self._options.validate and declared and declared != digest:
                    sink.abort()
                    return (
                        "verification_failed",
                        f"{key} content checksum {digest} does not match declared {declared}",
                        digest,
                    )
                sink.commit(self._destination_descriptor(source_descriptor, digest, size))
        except (OSError, MirrorError) as error:
            return "transfer_error", f"Failed to transfer {key}: {error}", None
        return "copied", f"{key} copied ({size} bytes)", digest

    def _destination_descriptor(
        self, source_descriptor: ArtifactDescriptor, digest: str, size: int
    ) -> ArtifactDescriptor:
        if self._options.raw:
            return source_descriptor
        properties: dict[str, str] = {}
        if self._options.mirror_properties:
            properties.update(
                (name, value)
                for name, value in source_descriptor.properties.items()
                if not name.startswith(CHECKSUM_PROPERTY_PREFIX) and name != SIZE_PROPERTY
            )
        properties[SIZE_PROPERTY] = str(size)
        properties[_CHECKSUM_PROPERTY] = digest
        return ArtifactDescriptor(key=source_descriptor.key, properties=properties)

    def _compare_baseline(self, key: ArtifactKey, outcome: MirrorOutcome) -> BaselineOutcome:
        if self._baseline is None:
            return "not_configured"
        if outcome == "transfer_error":
            return "skipped"
        try:
            present = self._baseline.contains(key)
        except (OSError, MirrorError) as error:
            self._record(
                Severity.INFO,
                "baseline_unavailable",
                f"Baseline lookup failed for {key}: {error}",
                subject=str(key),
            )
            return "skipped"
        if not present:
            return "missing"
        result = self._compare(key, self._baseline)
        if result.outcome == "error":
            self._record(
                Severity.INFO,
                "baseline_unavailable",
                f"Baseline comparison skipped for {key}: {result.reason}",
                subject=str(key),
            )
            return "skipped"
        return result.outcome

    def _compare(self, key: ArtifactKey, other: ArtifactRepository) -> CompareResult:
        result = compare_artifact(
            self._comparator,
            key,
            self._source,
            other,
            exclusions=self._options.compare_exclusions,
        )
        if self._comparator_log is not None:
            self._comparator_log.log(
                StatusEntry(
                    severity=_COMPARE_SEVERITIES[result.outcome],
                    code=f"compare_{result.outcome}",
                    message=(
                        f"{self._comparator.comparator_id} {self._source.location} "
                        f"vs {other.location}: {result.reason or result.outcome}"
                    ),
                    subject=str(key),
                )
            )
        return result

    def _build_task(
        self,
        key: ArtifactKey,
        outcome: MirrorOutcome,
        message: str,
        baseline: BaselineOutcome = "not_configured",
        digest: str | None = None,
    ) -> MirrorTask:
        severity = OUTCOME_SEVERITIES[outcome]
        if baseline == "different":
            severity = max(severity, Severity.WARNING)
            message = f"{message}; differs from baseline"
        return MirrorTask(
            key=key,
            outcome=outcome,
            severity=severity,
            message=message,
            baseline=baseline,
            digest=digest,
        )

    def _record(
        self, severity: Severity, code: str, message: str, subject: str | None = None
    ) -> None:
        entry = self._run_status.add(severity, code, message, subject)
        if self._mirror_log is not None:
            self._mirror_log.log(entry)

    def _log_task(self, task: MirrorTask) -> None:
        if self._mirror_log is not None:
            self._mirror_log.log(task.to_entry())
        if task.severity == Severity.ERROR:
            _LOGGER.error("artifact_task_failed", key=str(task.key), outcome=task.outcome)
        elif task.severity == Severity.WARNING:
            _LOGGER.warning("artifact_task_warning", key=str(task.key), outcome=task.outcome)
        elif self._options.verbose:
            _LOGGER.info("artifact_task_done", key=str(task.key), outcome=task.outcome)
