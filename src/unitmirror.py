"""Public SDK surface for unitmirror.

This module provides a stable import path for library users.
It re-exports the primary client and typed option models.
"""

from __future__ import annotations

from compare.comparators import register_comparator, resolve_comparator, supported_comparators
from core.cancellation import CancellationToken
from core.config import MirrorConfig
from core.status import Severity, Status, StatusEntry
from core.types import (
    ArtifactDescriptor,
    ArtifactKey,
    Capability,
    RepositoryReference,
    Requirement,
    SlicingPolicy,
    Unit,
)
from core.versions import Version, VersionRange
from mirror.application import MirrorApplication, MirrorRequest, MirrorRunResult, RepositorySpec
from mirror.artifact_mirror import ArtifactMirror
from mirror.client import MirrorClient
from mirror.mirror_types import ArtifactMirrorOptions, MirrorReport, MirrorTask
from slicing.closure import Closure
from slicing.slicer import SliceResult, Slicer, slice_units
from store.provider import LocalRepositoryProvider, MemoryRepositoryRegistry

__all__ = [
    "ArtifactDescriptor",
    "ArtifactKey",
    "ArtifactMirror",
    "ArtifactMirrorOptions",
    "CancellationToken",
    "Capability",
    "Closure",
    "LocalRepositoryProvider",
    "MemoryRepositoryRegistry",
    "MirrorApplication",
    "MirrorClient",
    "MirrorConfig",
    "MirrorReport",
    "MirrorRequest",
    "MirrorRunResult",
    "MirrorTask",
    "RepositoryReference",
    "RepositorySpec",
    "Requirement",
    "Severity",
    "SliceResult",
    "Slicer",
    "SlicingPolicy",
    "Status",
    "StatusEntry",
    "Unit",
    "Version",
    "VersionRange",
    "register_comparator",
    "resolve_comparator",
    "slice_units",
    "supported_comparators",
]
