"""Repository provider for local and in-memory locations.

Locations are filesystem paths, ``file://`` URIs, or ``mem:<name>`` names
registered with a ``MemoryRepositoryRegistry``.
"""

from __future__ import annotations

from pathlib import Path
import shutil
from typing import Protocol, TypeVar

from core.constants import (
    ARTIFACTS_DIR_NAME,
    ARTIFACTS_INDEX_FILE_NAME,
    CONTENT_FILE_NAME,
    FILE_URI_PREFIX,
    MEMORY_LOCATION_PREFIX,
)
from core.errors import MirrorRepositoryError
from core.logging_config import get_logger
from store.file_repository import FileArtifactRepository, FileMetadataRepository
from store.memory_repository import InMemoryArtifactRepository, InMemoryMetadataRepository
from store.repository import ArtifactRepository, MetadataRepository

_LOGGER = get_logger(__name__)

_RepositoryT = TypeVar("_RepositoryT")


class RepositoryProvider(Protocol):
    """Opens source and destination repositories by location."""

    def open_metadata_source(self, location: str) -> MetadataRepository: ...

    def open_artifact_source(self, location: str) -> ArtifactRepository: ...

    def open_metadata_destination(
        self, location: str, append: bool = True, name: str | None = None
    ) -> MetadataRepository: ...

    def open_artifact_destination(
        self, location: str, append: bool = True, name: str | None = None
    ) -> ArtifactRepository: ...


class MemoryRepositoryRegistry:
    """Named in-memory repositories addressable as ``mem:<name>``."""

    def __init__(self) -> None:
        self.metadata: dict[str, InMemoryMetadataRepository] = {}
        self.artifacts: dict[str, InMemoryArtifactRepository] = {}

    def register_metadata(self, repository: InMemoryMetadataRepository) -> None:
        """Expose a metadata repository under its location."""
        self.metadata[repository.location] = repository

    def register_artifacts(self, repository: InMemoryArtifactRepository) -> None:
        """Expose an artifact repository under its location."""
        self.artifacts[repository.location] = repository


class LocalRepositoryProvider:
    """Provider for filesystem and in-memory repositories."""

    def __init__(self, memory: MemoryRepositoryRegistry | None = None) -> None:
        self.memory = memory or MemoryRepositoryRegistry()

    def open_metadata_source(self, location: str) -> MetadataRepository:
        """Open an existing metadata repository.

        Raises:
            MirrorRepositoryError: If nothing exists at the location.
        """
        if location.startswith(MEMORY_LOCATION_PREFIX):
            return _lookup_memory(self.memory.metadata, location, "metadata")
        root = resolve_location(location)
        if not (root / CONTENT_FILE_NAME).exists():
            raise MirrorRepositoryError(
                f"No metadata repository found at {root}: missing {CONTENT_FILE_NAME}. "
                "Check the source location."
            )
        return FileMetadataRepository(root)

    def open_artifact_source(self, location: str) -> ArtifactRepository:
        """Open an existing artifact repository.

        Raises:
            MirrorRepositoryError: If nothing exists at the location.
        """
        if location.startswith(MEMORY_LOCATION_PREFIX):
            return _lookup_memory(self.memory.artifacts, location, "artifact")
        root = resolve_location(location)
        if not (root / ARTIFACTS_INDEX_FILE_NAME).exists():
            raise MirrorRepositoryError(
                f"No artifact repository found at {root}: missing {ARTIFACTS_INDEX_FILE_NAME}. "
                "Check the source location."
            )
        return FileArtifactRepository(root)

    def open_metadata_destination(
        self, location: str, append: bool = True, name: str | None = None
    ) -> MetadataRepository:
        """Open or create a metadata destination; ``append=False`` empties it."""
        if location.startswith(MEMORY_LOCATION_PREFIX):
            existing = self.memory.metadata.get(location)
            if existing is None or not append:
                existing = InMemoryMetadataRepository(location)
                self.memory.register_metadata(existing)
            return existing
        root = _prepare_root(location)
        if not append:
            _remove_path(root / CONTENT_FILE_NAME)
        _LOGGER.info("metadata_destination_opened", location=str(root), append=append)
        return FileMetadataRepository(root, name=name)

    def open_artifact_destination(
        self, location: str, append: bool = True, name: str | None = None
    ) -> ArtifactRepository:
        """Open or create an artifact destination; ``append=False`` empties it."""
        if location.startswith(MEMORY_LOCATION_PREFIX):
            existing = self.memory.artifacts.get(location)
            if existing is None or not append:
                existing = InMemoryArtifactRepository(location)
                self.memory.register_artifacts(existing)
            return existing
        root = _prepare_root(location)
        if not append:
            _remove_path(root / ARTIFACTS_INDEX_FILE_NAME)
            _remove_path(root / ARTIFACTS_DIR_NAME)
        _LOGGER.info("artifact_destination_opened", location=str(root), append=append)
        return FileArtifactRepository(root, name=name)


def resolve_location(location: str) -> Path:
    """Turn a path or ``file://`` URI into an absolute path."""
    return Path(location.removeprefix(FILE_URI_PREFIX)).expanduser().resolve()


def _lookup_memory(registry: dict[str, _RepositoryT], location: str, kind: str) -> _RepositoryT:
    repository = registry.get(location)
    if repository is None:
        raise MirrorRepositoryError(
            f"No in-memory {kind} repository registered at {location}. "
            "Register it with the provider's memory registry first."
        )
    return repository


def _prepare_root(location: str) -> Path:
    root = resolve_location(location)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise MirrorRepositoryError(
            f"Cannot create destination repository at {root}: {error}."
        ) from error
    return root


def _remove_path(path: Path) -> None:
    try:
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
    except OSError as error:
        raise MirrorRepositoryError(
            f"Failed to clean destination path {path}: {error}. Check write permissions."
        ) from error
