"""Read-only views over several source repositories."""

from __future__ import annotations

from typing import IO, Callable, Iterable, Sequence

from core.errors import MirrorRepositoryError
from core.types import ArtifactDescriptor, ArtifactKey, RepositoryReference, Requirement, Unit
from core.versions import Version
from store.repository import ArtifactRepository, ArtifactSink, MetadataRepository


class CompositeMetadataRepository:
    """Union of metadata repositories, first occurrence of a unit wins."""

    def __init__(self, children: Sequence[MetadataRepository]) -> None:
        self.location = "composite:" + ",".join(child.location for child in children)
        self._children = tuple(children)

    @property
    def children(self) -> tuple[MetadataRepository, ...]:
        """Return child repositories in priority order."""
        return self._children

    def query(self, predicate: Callable[[Unit], bool] | None = None) -> list[Unit]:
        """Return matching units across children without duplicates."""
        return _dedupe(unit for child in self._children for unit in child.query(predicate))

    def lookup(self, requirement: Requirement) -> list[Unit]:
        """Return providers across children without duplicates."""
        return _dedupe(unit for child in self._children for unit in child.lookup(requirement))

    def references(self) -> tuple[RepositoryReference, ...]:
        """Return the union of child references."""
        merged: dict[RepositoryReference, None] = {}
        for child in self._children:
            merged.update((reference, None) for reference in child.references())
        return tuple(merged)

    def add_units(self, units: Iterable[Unit]) -> None:
        raise MirrorRepositoryError("Composite source repositories are read-only.")

    def add_references(self, references: Iterable[RepositoryReference]) -> None:
        raise MirrorRepositoryError("Composite source repositories are read-only.")

    def close(self) -> None:
        """Children are owned and closed by whoever opened them."""


class CompositeArtifactRepository:
    """Union of artifact repositories, first child holding a key wins."""

    def __init__(self, children: Sequence[ArtifactRepository]) -> None:
        self.location = "composite:" + ",".join(child.location for child in children)
        self._children = tuple(children)

    def descriptors(self) -> list[ArtifactDescriptor]:
        """Return descriptors across children, one per key."""
        merged: dict[ArtifactKey, ArtifactDescriptor] = {}
        for child in self._children:
            for descriptor in child.descriptors():
                merged.setdefault(descriptor.key, descriptor)
        return list(merged.values())

    def get_descriptor(self, key: ArtifactKey) -> ArtifactDescriptor | None:
        """Return the first child's descriptor for a key."""
        for child in self._children:
            descriptor = child.get_descriptor(key)
            if descriptor is not None:
                return descriptor
        return None

    def contains(self, key: ArtifactKey) -> bool:
        """Return whether any child holds the key."""
        return any(child.contains(key) for child in self._children)

    def read(self, key: ArtifactKey) -> IO[bytes]:
        """Open the key from the first child holding it."""
        for child in self._children:
            if child.contains(key):
                return child.read(key)
        raise MirrorRepositoryError(f"Artifact {key} not found in {self.location}.")

    def write(self, key: ArtifactKey) -> ArtifactSink:
        raise MirrorRepositoryError("Composite source repositories are read-only.")

    def close(self) -> None:
        """Children are owned and closed by whoever opened them."""


def _dedupe(units: Iterable[Unit]) -> list[Unit]:
    seen: dict[tuple[str, Version], Unit] = {}
    for unit in units:
        seen.setdefault(unit.identity, unit)
    return list(seen.values())
