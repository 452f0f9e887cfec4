"""Repository contracts consumed by the slicer and the mirror engine.

Metadata repositories hold units and references; artifact repositories hold
descriptors and bytes. Writes go through an ``ArtifactSink`` that becomes
visible only on ``commit``; leaving the sink's context without committing
discards the partial write.
"""

from __future__ import annotations

from types import TracebackType
from typing import IO, Callable, Iterable, Protocol

from core.errors import MirrorTransferError
from core.types import ArtifactDescriptor, ArtifactKey, RepositoryReference, Requirement, Unit


class MetadataRepository(Protocol):
    """Units and repository references."""

    location: str

    def query(self, predicate: Callable[[Unit], bool] | None = None) -> list[Unit]: ...

    def lookup(self, requirement: Requirement) -> list[Unit]: ...

    def references(self) -> tuple[RepositoryReference, ...]: ...

    def add_units(self, units: Iterable[Unit]) -> None: ...

    def add_references(self, references: Iterable[RepositoryReference]) -> None: ...

    def close(self) -> None: ...


class ArtifactSink(Protocol):
    """Staged artifact write."""

    def write(self, data: bytes) -> int: ...

    def commit(self, descriptor: ArtifactDescriptor) -> None: ...

    def abort(self) -> None: ...

    def __enter__(self) -> "ArtifactSink": ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None: ...


class ArtifactRepository(Protocol):
    """Artifact descriptors and their byte content."""

    location: str

    def descriptors(self) -> list[ArtifactDescriptor]: ...

    def get_descriptor(self, key: ArtifactKey) -> ArtifactDescriptor | None: ...

    def contains(self, key: ArtifactKey) -> bool: ...

    def read(self, key: ArtifactKey) -> IO[bytes]: ...

    def write(self, key: ArtifactKey) -> ArtifactSink: ...

    def close(self) -> None: ...


class StagedSink:
    """Context-manager plumbing shared by concrete sinks.

    Subclasses implement ``write``, ``_publish`` and ``_discard``.
    """

    def __init__(self, key: ArtifactKey) -> None:
        self.key = key
        self._finished = False

    def write(self, data: bytes) -> int:
        raise NotImplementedError

    def commit(self, descriptor: ArtifactDescriptor) -> None:
        """Publish staged bytes under the descriptor.

        Raises:
            MirrorTransferError: If the staged bytes cannot be published.
        """
        if self._finished:
            return
        try:
            self._publish(descriptor)
        except OSError as error:
            self.abort()
            raise MirrorTransferError(
                f"Failed to publish artifact {self.key}: {error}. "
                "Check destination permissions and available disk space."
            ) from error
        self._finished = True

    def abort(self) -> None:
        """Drop staged bytes; idempotent."""
        if self._finished:
            return
        self._finished = True
        self._discard()

    def __enter__(self) -> "StagedSink":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.abort()

    def _publish(self, descriptor: ArtifactDescriptor) -> None:
        raise NotImplementedError

    def _discard(self) -> None:
        raise NotImplementedError
