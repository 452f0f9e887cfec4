"""Compare one artifact key across two repositories."""

from __future__ import annotations

from typing import Callable

from compare.comparators import CompareResult, ContentComparator
from core.errors import MirrorRepositoryError
from core.types import ArtifactDescriptor, ArtifactKey
from store.repository import ArtifactRepository

ExclusionPredicate = Callable[[ArtifactDescriptor], bool]


def compare_artifact(
    comparator: ContentComparator,
    key: ArtifactKey,
    repository_a: ArtifactRepository,
    repository_b: ArtifactRepository,
    exclusions: ExclusionPredicate | None = None,
) -> CompareResult:
    """Compare the bytes stored under one key in two repositories.

    Excluded descriptors compare equal without reading content. Failing to
    open either stream is an ``error`` result, not ``different``.

    Args:
        comparator: Comparator strategy.
        key: Artifact key present in both repositories.
        repository_a: First repository, usually the mirror source.
        repository_b: Second repository, destination or baseline.
        exclusions: Optional predicate over the first repository's descriptor.

    Returns:
        Comparison result.
    """
    descriptor = repository_a.get_descriptor(key)
    if exclusions is not None and descriptor is not None and exclusions(descriptor):
        return CompareResult(outcome="equal", reason="excluded from comparison")
    try:
        with repository_a.read(key) as stream_a, repository_b.read(key) as stream_b:
            return comparator.compare(stream_a, stream_b)
    except (OSError, MirrorRepositoryError) as error:
        return CompareResult(outcome="error", reason=f"cannot open {key}: {error}")
