"""Typed models for artifact mirroring runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from compare.artifact_comparison import ExclusionPredicate
from core.constants import DEFAULT_CHUNK_SIZE, DEFAULT_COMPARATOR_ID, DEFAULT_MAX_WORKERS
from core.status import Severity, Status, StatusEntry
from core.types import ArtifactKey

FailurePolicy = Literal["fail_fast", "best_effort"]
MirrorOutcome = Literal[
    "copied",
    "already_present",
    "already_equal",
    "verification_failed",
    "comparator_mismatch",
    "comparator_error",
    "transfer_error",
]
BaselineOutcome = Literal["not_configured", "equal", "different", "missing", "skipped"]

OUTCOME_SEVERITIES: dict[MirrorOutcome, Severity] = {
    "copied": Severity.OK,
    "already_present": Severity.OK,
    "already_equal": Severity.OK,
    "verification_failed": Severity.ERROR,
    "comparator_mismatch": Severity.WARNING,
    "comparator_error": Severity.ERROR,
    "transfer_error": Severity.ERROR,
}


@dataclass(frozen=True)
class ArtifactMirrorOptions:
    """Options controlling one artifact mirror run.

    Attributes:
        raw: Copy descriptors verbatim, including repository properties.
        validate: Check integrity metadata of existing and copied artifacts.
        compare: Compare content of artifacts already in the destination.
        mirror_properties: Carry custom properties forward in non-raw mode.
        failure_policy: ``fail_fast`` stops at the first error,
            ``best_effort`` processes every artifact.
        comparator_id: Registered comparator identifier.
        compare_exclusions: Descriptors excluded from content comparison.
        max_workers: Degree of transfer parallelism.
        chunk_size: Stream chunk size in bytes.
        verbose: Log every task outcome, not only problems.
    """

    raw: bool = True
    validate: bool = False
    compare: bool = False
    mirror_properties: bool = False
    failure_policy: FailurePolicy = "fail_fast"
    comparator_id: str = DEFAULT_COMPARATOR_ID
    compare_exclusions: ExclusionPredicate | None = None
    max_workers: int = DEFAULT_MAX_WORKERS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    verbose: bool = False

    @property
    def fail_on_error(self) -> bool:
        """Return whether the first task error aborts the run."""
        return self.failure_policy == "fail_fast"


@dataclass(frozen=True)
class MirrorTask:
    """Outcome of mirroring one artifact key."""

    key: ArtifactKey
    outcome: MirrorOutcome
    severity: Severity
    message: str
    baseline: BaselineOutcome = "not_configured"
    digest: str | None = None

    def to_entry(self) -> StatusEntry:
        """Render the task as a status entry for logs."""
        return StatusEntry(
            severity=self.severity,
            code=self.outcome,
            message=self.message,
            subject=str(self.key),
        )


@dataclass(frozen=True)
class MirrorReport:
    """Immutable result of an artifact mirror run.

    Attributes:
        tasks: Outcomes of attempted artifacts in selection order.
        status: Run-level entries such as aborts and baseline problems.
        aborted: Whether a task error raised the fail-fast abort signal.
        cancelled: Whether the cancellation token stopped the run early.
        not_attempted: Selected artifacts skipped after an abort or cancel.
    """

    tasks: tuple[MirrorTask, ...]
    status: Status = Status()
    aborted: bool = False
    cancelled: bool = False
    not_attempted: int = 0

    @property
    def severity(self) -> Severity:
        """Return the maximum severity of tasks and run-level entries."""
        task_severity = max((task.severity for task in self.tasks), default=Severity.OK)
        return max(task_severity, self.status.severity)

    def count(self, outcome: MirrorOutcome) -> int:
        """Count tasks with an outcome."""
        return sum(1 for task in self.tasks if task.outcome == outcome)

    @property
    def error_count(self) -> int:
        """Count tasks at ERROR severity."""
        return sum(1 for task in self.tasks if task.severity == Severity.ERROR)
