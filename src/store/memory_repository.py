"""In-memory repositories.

These back ``mem:`` locations and serve as the base for the filesystem
repositories, which keep their index in memory and persist on change.
"""

from __future__ import annotations

import io
import threading
from typing import IO, Callable, Iterable

from core.errors import MirrorRepositoryError
from core.types import ArtifactDescriptor, ArtifactKey, RepositoryReference, Requirement, Unit
from core.versions import Version
from store.repository import StagedSink


class InMemoryMetadataRepository:
    """Metadata repository holding units in insertion order."""

    def __init__(
        self,
        location: str = "mem:metadata",
        units: Iterable[Unit] = (),
        references: Iterable[RepositoryReference] = (),
    ) -> None:
        self.location = location
        self._units: dict[tuple[str, Version], Unit] = {}
        self._references: dict[RepositoryReference, None] = {}
        self._lock = threading.Lock()
        _merge_units(self._units, units)
        self._references.update((reference, None) for reference in references)

    def query(self, predicate: Callable[[Unit], bool] | None = None) -> list[Unit]:
        """Return units matching a predicate, every unit when omitted."""
        with self._lock:
            units = list(self._units.values())
        if predicate is None:
            return units
        return [unit for unit in units if predicate(unit)]

    def lookup(self, requirement: Requirement) -> list[Unit]:
        """Return units providing a capability that satisfies the requirement."""
        return self.query(lambda unit: unit.satisfies(requirement))

    def references(self) -> tuple[RepositoryReference, ...]:
        """Return repository references."""
        with self._lock:
            return tuple(self._references)

    def add_units(self, units: Iterable[Unit]) -> None:
        """Add units; an existing id/version pair keeps its current unit."""
        with self._lock:
            _merge_units(self._units, units)

    def add_references(self, references: Iterable[RepositoryReference]) -> None:
        """Add references, ignoring duplicates."""
        with self._lock:
            self._references.update((reference, None) for reference in references)

    def close(self) -> None:
        """Nothing to release."""


class InMemoryArtifactRepository:
    """Artifact repository holding bytes in memory."""

    def __init__(self, location: str = "mem:artifacts") -> None:
        self.location = location
        self._descriptors: dict[ArtifactKey, ArtifactDescriptor] = {}
        self._content: dict[ArtifactKey, bytes] = {}
        self._lock = threading.Lock()

    def add_artifact(self, descriptor: ArtifactDescriptor, content: bytes) -> None:
        """Store an artifact directly, replacing any existing entry."""
        with self._lock:
            self._descriptors[descriptor.key] = descriptor
            self._content[descriptor.key] = content

    def descriptors(self) -> list[ArtifactDescriptor]:
        """Return every descriptor in insertion order."""
        with self._lock:
            return list(self._descriptors.values())

    def get_descriptor(self, key: ArtifactKey) -> ArtifactDescriptor | None:
        """Return the descriptor for a key, if present."""
        with self._lock:
            return self._descriptors.get(key)

    def contains(self, key: ArtifactKey) -> bool:
        """Return whether the key is stored."""
        with self._lock:
            return key in self._descriptors

    def read(self, key: ArtifactKey) -> IO[bytes]:
        """Open the stored bytes.

        Raises:
            MirrorRepositoryError: If the key is not stored.
        """
        with self._lock:
            content = self._content.get(key)
        if content is None:
            raise MirrorRepositoryError(f"Artifact {key} not found in {self.location}.")
        return io.BytesIO(content)

    def write(self, key: ArtifactKey) -> "_MemorySink":
        """Stage a write that becomes visible on commit."""
        return _MemorySink(self, key)

    def content(self, key: ArtifactKey) -> bytes:
        """Return stored bytes, mainly for inspection."""
        with self.read(key) as stream:
            return stream.read()

    def close(self) -> None:
        """Nothing to release."""


class _MemorySink(StagedSink):
    def __init__(self, repository: InMemoryArtifactRepository, key: ArtifactKey) -> None:
        super().__init__(key)
        self._repository = repository
        self._buffer = io.BytesIO()

    def write(self, data: bytes) -> int:
        return self._buffer.write(data)

    def _publish(self, descriptor: ArtifactDescriptor) -> None:
        self._repository.add_artifact(descriptor, self._buffer.getvalue())

    def _discard(self) -> None:
        self._buffer = io.BytesIO()


def _merge_units(target: dict[tuple[str, Version], Unit], units: Iterable[Unit]) -> None:
    for unit in units:
        target.setdefault(unit.identity, unit)
