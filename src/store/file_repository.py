"""Filesystem-backed metadata and artifact repositories.

Layout under a repository root::

    content.json              units, references, repository name
    artifacts.json            artifact descriptors
    artifacts/<classifier>/   artifact blobs named ``<id>_<version>``

Index files are replaced atomically. The artifact index is kept in memory while
artifacts are committed and written once by ``flush`` or ``close``. Artifact
bytes are staged in a hidden temporary file next to their final path and
renamed into place on commit, so readers never observe a partial artifact.
"""

from __future__ import annotations

import os
from pathlib import Path
import tempfile
import threading
from typing import IO, Callable, Iterable

from core.constants import (
    ARTIFACTS_DIR_NAME,
    ARTIFACTS_INDEX_FILE_NAME,
    CONTENT_FILE_NAME,
    REPOSITORY_FORMAT_VERSION,
)
from core.errors import MirrorModelError, MirrorRepositoryError, MirrorTransferError
from core.logging_config import get_logger
from core.types import ArtifactDescriptor, ArtifactKey, RepositoryReference, Requirement, Unit
from store.json_io import read_json_file, write_json_file_atomic
from store.memory_repository import InMemoryMetadataRepository
from store.repository import StagedSink
from store.unit_payload import (
    descriptor_from_payload,
    descriptor_to_payload,
    reference_from_payload,
    reference_to_payload,
    unit_from_payload,
    unit_to_payload,
)

_LOGGER = get_logger(__name__)


class FileMetadataRepository:
    """Metadata repository persisted as ``content.json``."""

    def __init__(self, root: Path, name: str | None = None) -> None:
        """Load or initialize a metadata repository.

        Args:
            root: Repository root directory.
            name: Optional repository name stored in the index.

        Raises:
            MirrorRepositoryError: If an existing index is unreadable.
        """
        self.root = root
        self.location = str(root)
        self._content_path = root / CONTENT_FILE_NAME
        self._lock = threading.Lock()
        units, references, stored_name = _load_content(self._content_path)
        self.name = name or stored_name
        self._index = InMemoryMetadataRepository(self.location, units, references)

    def query(self, predicate: Callable[[Unit], bool] | None = None) -> list[Unit]:
        """Return units matching a predicate, every unit when omitted."""
        return self._index.query(predicate)

    def lookup(self, requirement: Requirement) -> list[Unit]:
        """Return units satisfying the requirement."""
        return self._index.lookup(requirement)

    def references(self) -> tuple[RepositoryReference, ...]:
        """Return repository references."""
        return self._index.references()

    def add_units(self, units: Iterable[Unit]) -> None:
        """Add a batch of units; the index on disk is replaced in one step.

        Raises:
            MirrorRepositoryError: If the index cannot be written.
        """
        with self._lock:
            candidate = InMemoryMetadataRepository(
                self.location, self._index.query(), self._index.references()
            )
            candidate.add_units(units)
            self._persist(candidate)

    def add_references(self, references: Iterable[RepositoryReference]) -> None:
        """Add references and persist the index."""
        with self._lock:
            candidate = InMemoryMetadataRepository(
                self.location, self._index.query(), self._index.references()
            )
            candidate.add_references(references)
            self._persist(candidate)

    def close(self) -> None:
        """Nothing to release; writes are flushed eagerly."""

    def _persist(self, candidate: InMemoryMetadataRepository) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        payload = {
            "format": REPOSITORY_FORMAT_VERSION,
            "name": self.name,
            "units": [unit_to_payload(unit) for unit in candidate.query()],
            "references": [reference_to_payload(item) for item in candidate.references()],
        }
        write_json_file_atomic(self._content_path, payload)
        self._index = candidate


class FileArtifactRepository:
    """Artifact repository persisted as ``artifacts.json`` plus blob files."""

    def __init__(self, root: Path, name: str | None = None) -> None:
        """Load or initialize an artifact repository.

        Args:
            root: Repository root directory.
            name: Optional repository name.

        Raises:
            MirrorRepositoryError: If an existing index is unreadable.
        """
        self.root = root
        self.location = str(root)
        self.name = name
        self._index_path = root / ARTIFACTS_INDEX_FILE_NAME
        self._blobs_root = root / ARTIFACTS_DIR_NAME
        self._lock = threading.Lock()
        self._descriptors = _load_descriptors(self._index_path)
        self._dirty = False

    def descriptors(self) -> list[ArtifactDescriptor]:
        """Return every descriptor in index order."""
        with self._lock:
            return list(self._descriptors.values())

    def get_descriptor(self, key: ArtifactKey) -> ArtifactDescriptor | None:
        """Return the descriptor for a key, if present."""
        with self._lock:
            return self._descriptors.get(key)

    def contains(self, key: ArtifactKey) -> bool:
        """Return whether the key is indexed."""
        with self._lock:
            return key in self._descriptors

    def read(self, key: ArtifactKey) -> IO[bytes]:
        """Open an artifact blob for binary reading.

        Raises:
            MirrorRepositoryError: If the key is not indexed.
            OSError: If the blob cannot be opened.
        """
        if not self.contains(key):
            raise MirrorRepositoryError(f"Artifact {key} not found in {self.location}.")
        return open(self.blob_path(key), "rb")

    def write(self, key: ArtifactKey) -> "_FileSink":
        """Stage an artifact write in a temporary file.

        Raises:
            MirrorTransferError: If the key would place its blob outside the repository.
        """
        try:
            return _FileSink(self, key)
        except MirrorRepositoryError as error:
            raise MirrorTransferError(str(error)) from error

    def blob_path(self, key: ArtifactKey) -> Path:
        """Return the final blob path of a key.

        Raises:
            MirrorRepositoryError: If the path resolves outside the blob directory.
        """
        path = self._blobs_root / key.classifier / f"{key.artifact_id}_{key.version}"
        blobs_root = self._blobs_root.resolve()
        if blobs_root not in path.resolve().parents:
            raise MirrorRepositoryError(
                f"Artifact key {key} escapes the blob directory of {self.location}. "
                "Classifiers and ids must not contain path separators or '..'."
            )
        return path

    def flush(self) -> None:
        """Write the artifact index if commits changed it.

        Raises:
            MirrorRepositoryError: If the index cannot be written.
        """
        with self._lock:
            if not self._dirty:
                return
            payload = {
                "format": REPOSITORY_FORMAT_VERSION,
                "artifacts": [descriptor_to_payload(item) for item in self._descriptors.values()],
            }
            write_json_file_atomic(self._index_path, payload)
            self._dirty = False
        _LOGGER.debug("artifact_index_flushed", location=self.location)

    def close(self) -> None:
        """Flush pending index changes."""
        self.flush()

    def _register(self, descriptor: ArtifactDescriptor) -> None:
        with self._lock:
            self._descriptors[descriptor.key] = descriptor
            self._dirty = True


class _FileSink(StagedSink):
    def __init__(self, repository: FileArtifactRepository, key: ArtifactKey) -> None:
        super().__init__(key)
        self._repository = repository
        self._final_path = repository.blob_path(key)
        self._final_path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = tempfile.NamedTemporaryFile(
            "wb",
            dir=self._final_path.parent,
            prefix=f".partial-{self._final_path.name}.",
            delete=False,
        )

    def write(self, data: bytes) -> int:
        return self._handle.write(data)

    def _publish(self, descriptor: ArtifactDescriptor) -> None:
        self._handle.flush()
        os.fsync(self._handle.fileno())
        self._handle.close()
        os.replace(self._handle.name, self._final_path)
        self._repository._register(descriptor)
        _LOGGER.debug("artifact_committed", key=str(self.key), path=str(self._final_path))

    def _discard(self) -> None:
        self._handle.close()
        if os.path.exists(self._handle.name):
            os.unlink(self._handle.name)


def _load_content(
    content_path: Path,
) -> tuple[list[Unit], list[RepositoryReference], str | None]:
    if not content_path.exists():
        return [], [], None
    payload = read_json_file(content_path)
    try:
        units = [unit_from_payload(item) for item in _payload_rows(payload, "units")]
        references = [
            reference_from_payload(item) for item in _payload_rows(payload, "references")
        ]
    except MirrorModelError as error:
        raise MirrorRepositoryError(
            f"Invalid metadata index at {content_path}: {error}"
        ) from error
    name = payload.get("name")
    return units, references, str(name) if name else None


def _load_descriptors(index_path: Path) -> dict[ArtifactKey, ArtifactDescriptor]:
    if not index_path.exists():
        return {}
    payload = read_json_file(index_path)
    try:
        descriptors = [
            descriptor_from_payload(item) for item in _payload_rows(payload, "artifacts")
        ]
    except MirrorModelError as error:
        raise MirrorRepositoryError(f"Invalid artifact index at {index_path}: {error}") from error
    return {descriptor.key: descriptor for descriptor in descriptors}


def _payload_rows(payload: dict[str, object], field_name: str) -> list[dict[str, object]]:
    rows = payload.get(field_name, [])
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise MirrorModelError(f"field '{field_name}' must be a list of objects")
    return rows
