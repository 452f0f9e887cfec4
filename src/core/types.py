"""Shared typed models.

This module defines the immutable unit graph model used by the slicer,
repositories, and the mirror engine to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, Mapping

from core.constants import UNIT_NAMESPACE
from core.versions import ANY_RANGE, Version, VersionRange

ReferenceKind = Literal["metadata", "artifact"]
RepositoryKind = Literal["metadata", "artifact", "both"]
WriteMode = Literal["append", "clean"]


@dataclass(frozen=True)
class Capability:
    """A named, versioned feature provided by a unit.

    Attributes:
        namespace: Capability namespace, e.g. ``package`` or ``unit``.
        name: Capability name within the namespace.
        version: Provided version.
        attributes: Ordered extra attributes, exposed read-only.
        directives: String directives attached to the capability.
    """

    namespace: str
    name: str
    version: Version
    attributes: Mapping[str, object] = field(default_factory=dict, compare=False)
    directives: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "directives", MappingProxyType(dict(self.directives)))


@dataclass(frozen=True)
class Requirement:
    """Query a unit poses against the capability space of a repository.

    Attributes:
        namespace: Capability namespace to match.
        name: Capability name to match.
        range: Acceptable provided versions.
        optional: Whether the closure may omit a provider.
        greedy: Whether providers are pulled into the closure.
        multiple: Whether every matching provider is included.
        filter: Optional filter deciding if the requirement applies.
    """

    namespace: str
    name: str
    range: VersionRange = ANY_RANGE
    optional: bool = False
    greedy: bool = True
    multiple: bool = False
    filter: str | None = None

    @property
    def is_strict(self) -> bool:
        """Return whether the requirement pins one exact version."""
        return self.range.is_exact

    def matches(self, capability: Capability) -> bool:
        """Return whether a capability satisfies this requirement."""
        return (
            capability.namespace == self.namespace
            and capability.name == self.name
            and self.range.contains(capability.version)
        )

    def __str__(self) -> str:
        return f"{self.namespace}:{self.name} {self.range}"


@dataclass(frozen=True)
class ArtifactKey:
    """Structural identity of one binary artifact."""

    classifier: str
    artifact_id: str
    version: Version

    def __str__(self) -> str:
        return f"{self.classifier}/{self.artifact_id}/{self.version}"


@dataclass(frozen=True)
class ArtifactDescriptor:
    """Artifact key plus the properties stored alongside its bytes.

    Attributes:
        key: Artifact identity.
        properties: Normalized properties such as size and checksums.
        repository_properties: Repository-format-specific metadata.
    """

    key: ArtifactKey
    properties: Mapping[str, str] = field(default_factory=dict, compare=False)
    repository_properties: Mapping[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Unit:
    """Versioned software component description.

    Equality and hashing use ``unit_id`` and ``version`` only, which is the
    identity a repository and a closure deduplicate on.

    Attributes:
        unit_id: Unit identifier.
        version: Unit version.
        requirements: Requirements posed by the unit.
        capabilities: Capabilities explicitly provided.
        artifacts: Ordered artifact keys referenced by the unit.
        filter: Optional filter deciding if the unit applies.
        touchpoint: Optional touchpoint type used at install time.
        fragment_host: Host unit id when the unit is a fragment.
        properties: Free-form unit properties.
    """

    unit_id: str
    version: Version
    requirements: tuple[Requirement, ...] = field(default=(), compare=False)
    capabilities: tuple[Capability, ...] = field(default=(), compare=False)
    artifacts: tuple[ArtifactKey, ...] = field(default=(), compare=False)
    filter: str | None = field(default=None, compare=False)
    touchpoint: str | None = field(default=None, compare=False)
    fragment_host: str | None = field(default=None, compare=False)
    properties: Mapping[str, str] = field(default_factory=dict, compare=False)

    @property
    def identity(self) -> tuple[str, Version]:
        """Return the id/version pair used for deduplication."""
        return (self.unit_id, self.version)

    def provided_capabilities(self) -> tuple[Capability, ...]:
        """Return explicit capabilities plus the implicit unit capability."""
        implicit = Capability(namespace=UNIT_NAMESPACE, name=self.unit_id, version=self.version)
        return (implicit,) + self.capabilities

    def satisfies(self, requirement: Requirement) -> bool:
        """Return whether any provided capability matches the requirement."""
        return any(requirement.matches(item) for item in self.provided_capabilities())

    def __str__(self) -> str:
        return f"{self.unit_id}@{self.version}"


@dataclass(frozen=True)
class RepositoryReference:
    """Pointer from one repository to another.

    Attributes:
        location: Referenced repository location.
        kind: Whether the reference targets metadata or artifacts.
        enabled: Whether consumers should load the reference by default.
    """

    location: str
    kind: ReferenceKind
    enabled: bool = True


@dataclass(frozen=True)
class SlicingPolicy:
    """Immutable configuration for closure computation.

    Attributes:
        environment: Properties filters are evaluated against; ``None``
            disables filter evaluation.
        include_optional_dependencies: Follow optional requirements.
        everything_greedy: Treat every requirement as greedy and include all
            matching providers.
        force_filter_to: When set, every filter evaluates to this value.
        consider_strict_dependency_only: Follow only exact-version
            requirements.
        follow_only_filtered_requirements: Follow only requirements carrying
            their own filter, looking through filtered-out units.
        latest_version_only: Keep only the highest version per unit id.
        install_time_like_resolution: Resolve with the external planner
            instead of the slicer.
    """

    environment: Mapping[str, str] | None = None
    include_optional_dependencies: bool = True
    everything_greedy: bool = False
    force_filter_to: bool | None = None
    consider_strict_dependency_only: bool = False
    follow_only_filtered_requirements: bool = False
    latest_version_only: bool = False
    install_time_like_resolution: bool = False
