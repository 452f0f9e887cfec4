"""Transitive closure of units under a slicing policy.

The slicer walks requirement edges breadth-first from the roots using an
explicit work-list and a visited set keyed by unit id and version, so cyclic
requirement graphs terminate without recursion. Missing dependencies are
recorded in the returned status; only a failing lookup aborts slicing.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from core.cancellation import CancellationToken
from core.errors import MirrorError, MirrorModelError, MirrorSlicingError
from core.filters import evaluate_filter
from core.logging_config import get_logger
from core.status import Severity, Status, StatusCollector
from core.types import Requirement, SlicingPolicy, Unit
from core.versions import Version
from slicing.closure import Closure

_LOGGER = get_logger(__name__)

Lookup = Callable[[Requirement], Sequence[Unit]]


@dataclass(frozen=True)
class SliceResult:
    """Closure plus the status accumulated while computing it."""

    closure: Closure
    status: Status


class Slicer:
    """Breadth-first closure computation over a lookup collaborator."""

    def __init__(
        self,
        lookup: Lookup,
        policy: SlicingPolicy | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Create a slicer.

        Args:
            lookup: Returns candidate providers for one requirement.
            policy: Slicing policy; defaults to ``SlicingPolicy()``.
            cancel_token: Optional token checked between work-list steps.
        """
        self._lookup = lookup
        self._policy = policy or SlicingPolicy()
        self._cancel_token = cancel_token
        self._reported_filters: set[tuple[str, str]] = set()

    def slice(self, roots: Iterable[Unit]) -> SliceResult:
        """Compute the closure reachable from the roots.

        Args:
            roots: Root units; duplicates are ignored.

        Returns:
            Closure and accumulated status.

        Raises:
            MirrorSlicingError: If the lookup collaborator fails.
            MirrorCancelledError: If the cancellation token fires.
        """
        status = StatusCollector()
        self._reported_filters = set()
        visited: set[tuple[str, Version]] = set()
        pending: deque[Unit] = deque()
        included: list[Unit] = []
        root_count = 0
        for root in roots:
            if root.identity in visited:
                continue
            visited.add(root.identity)
            root_count += 1
            pending.append(root)
        while pending:
            if self._cancel_token is not None:
                self._cancel_token.raise_if_cancelled("slicing")
            unit = pending.popleft()
            if self._unit_applies(unit, status):
                included.append(unit)
            else:
                status.add(
                    Severity.WARNING,
                    "filtered_root",
                    f"Root {unit} does not match the slicing environment and was excluded.",
                    subject=str(unit),
                )
                if not self._policy.follow_only_filtered_requirements:
                    continue
            for requirement in unit.requirements:
                if self._requirement_applies(requirement, status):
                    self._expand(unit, requirement, visited, pending, status)
        closure = Closure(included)
        if self._policy.latest_version_only:
            closure = closure.latest_only()
        result = SliceResult(closure=closure, status=status.freeze())
        _LOGGER.info(
            "slice_completed",
            root_count=root_count,
            unit_count=len(closure),
            severity=result.status.severity.label,
        )
        return result

    def _expand(
        self,
        unit: Unit,
        requirement: Requirement,
        visited: set[tuple[str, Version]],
        pending: deque[Unit],
        status: StatusCollector,
    ) -> None:
        candidates = [
            candidate
            for candidate in self._find_candidates(requirement)
            if self._unit_applies(candidate, status)
        ]
        if not candidates:
            severity = Severity.WARNING if requirement.optional else Severity.ERROR
            status.add(
                severity,
                "unsatisfied_requirement",
                f"Unable to satisfy {'optional ' if requirement.optional else ''}"
                f"requirement {requirement} of {unit}.",
                subject=str(unit),
            )
            return
        if self._policy.everything_greedy or requirement.multiple:
            selected = candidates
        else:
            selected = [_highest_version(candidates)]
        for candidate in selected:
            if candidate.identity in visited:
                continue
            visited.add(candidate.identity)
            pending.append(candidate)

    def _find_candidates(self, requirement: Requirement) -> Sequence[Unit]:
        try:
            return self._lookup(requirement)
        except MirrorError:
            raise
        except Exception as error:
            raise MirrorSlicingError(
                f"Lookup failed for requirement {requirement}: {error}. "
                "Check that the source metadata repositories are readable."
            ) from error

    def _unit_applies(self, unit: Unit, status: StatusCollector) -> bool:
        return self._filter_passes(unit.filter, str(unit), status)

    def _requirement_applies(self, requirement: Requirement, status: StatusCollector) -> bool:
        policy = self._policy
        if not self._filter_passes(requirement.filter, str(requirement), status):
            return False
        if requirement.optional and not policy.include_optional_dependencies:
            return False
        if policy.consider_strict_dependency_only and not requirement.is_strict:
            return False
        if policy.follow_only_filtered_requirements and requirement.filter is None:
            return False
        return requirement.greedy or policy.everything_greedy

    def _filter_passes(self, expression: str | None, subject: str, status: StatusCollector) -> bool:
        if expression is None:
            return True
        if self._policy.force_filter_to is not None:
            return self._policy.force_filter_to
        if self._policy.environment is None:
            return True
        try:
            return evaluate_filter(expression, self._policy.environment)
        except MirrorModelError as error:
            if (subject, expression) not in self._reported_filters:
                self._reported_filters.add((subject, expression))
                status.add(Severity.WARNING, "invalid_filter", str(error), subject=subject)
            return False


def _highest_version(candidates: Sequence[Unit]) -> Unit:
    """Return the highest version; on ties the earliest candidate wins."""
    best = candidates[0]
    for candidate in candidates[1:]:
        if candidate.version > best.version:
            best = candidate
    return best


def slice_units(
    roots: Iterable[Unit],
    lookup: Lookup,
    policy: SlicingPolicy | None = None,
    cancel_token: CancellationToken | None = None,
) -> SliceResult:
    """Compute a closure in one call; see ``Slicer.slice``."""
    return Slicer(lookup, policy, cancel_token).slice(roots)
