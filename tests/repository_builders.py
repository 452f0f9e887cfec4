"""Shared unit and artifact builders for tests."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable

from core.types import ArtifactDescriptor, ArtifactKey, Capability, Requirement, Unit
from core.versions import Version, VersionRange
from store.file_repository import FileArtifactRepository, FileMetadataRepository
from store.memory_repository import InMemoryArtifactRepository, InMemoryMetadataRepository


def version(text: str) -> Version:
    """Parse a version literal."""
    return Version.parse(text)


def requirement(
    name: str,
    range_text: str | None = None,
    namespace: str = "unit",
    **flags: object,
) -> Requirement:
    """Build a requirement on a capability, by default a unit id."""
    return Requirement(
        namespace=namespace,
        name=name,
        range=VersionRange.parse(range_text),
        **flags,  # type: ignore[arg-type]
    )


def artifact_key(artifact_id: str, version_text: str = "1.0.0") -> ArtifactKey:
    """Build a binary artifact key."""
    return ArtifactKey(classifier="binary", artifact_id=artifact_id, version=version(version_text))


def make_unit(
    unit_id: str,
    version_text: str = "1.0.0",
    requires: Iterable[Requirement] = (),
    provides: Iterable[tuple[str, str]] = (),
    artifacts: Iterable[ArtifactKey] = (),
    filter: str | None = None,
) -> Unit:
    """Build a unit; ``provides`` holds ``(namespace, name)`` pairs at the unit version."""
    unit_version = version(version_text)
    return Unit(
        unit_id=unit_id,
        version=unit_version,
        requirements=tuple(requires),
        capabilities=tuple(
            Capability(namespace=namespace, name=name, version=unit_version)
            for namespace, name in provides
        ),
        artifacts=tuple(artifacts),
        filter=filter,
    )


def sha256_hex(content: bytes) -> str:
    """Return the sha-256 hex digest of content."""
    return hashlib.sha256(content).hexdigest()


def make_descriptor(
    key: ArtifactKey,
    content: bytes,
    declared_digest: str | None = None,
    **properties: str,
) -> ArtifactDescriptor:
    """Build a descriptor declaring size and sha-256 checksum of content."""
    declared = {
        "download.size": str(len(content)),
        "checksum.sha-256": declared_digest or sha256_hex(content),
        **properties,
    }
    return ArtifactDescriptor(
        key=key,
        properties=declared,
        repository_properties={"format": "packed"},
    )


def artifact_repository(
    contents: dict[ArtifactKey, bytes],
    location: str = "mem:source-artifacts",
) -> InMemoryArtifactRepository:
    """Build an in-memory artifact repository holding the given blobs."""
    repository = InMemoryArtifactRepository(location)
    for key, content in contents.items():
        repository.add_artifact(make_descriptor(key, content), content)
    return repository


def metadata_repository(
    units: Iterable[Unit],
    location: str = "mem:source-metadata",
) -> InMemoryMetadataRepository:
    """Build an in-memory metadata repository."""
    return InMemoryMetadataRepository(location, units)


def write_file_repository(
    root: Path,
    units: Iterable[Unit],
    contents: dict[ArtifactKey, bytes],
) -> Path:
    """Create a filesystem repository holding both units and artifacts."""
    FileMetadataRepository(root).add_units(units)
    artifacts = FileArtifactRepository(root)
    for key, content in contents.items():
        with artifacts.write(key) as sink:
            sink.write(content)
            sink.commit(make_descriptor(key, content))
    artifacts.close()
    return root
