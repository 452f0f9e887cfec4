"""Shared JSON serialization for units, descriptors, and references.

This module centralizes repository payload encoding so the filesystem
repositories and any report writers agree on one layout.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.errors import MirrorModelError
from core.types import (
    ArtifactDescriptor,
    ArtifactKey,
    Capability,
    RepositoryReference,
    Requirement,
    Unit,
)
from core.versions import Version, VersionRange


def unit_to_payload(unit: Unit) -> dict[str, object]:
    """Serialize a unit into a JSON-safe payload."""
    return {
        "id": unit.unit_id,
        "version": str(unit.version),
        "filter": unit.filter,
        "touchpoint": unit.touchpoint,
        "fragment_host": unit.fragment_host,
        "properties": dict(unit.properties),
        "requirements": [_requirement_to_payload(item) for item in unit.requirements],
        "capabilities": [_capability_to_payload(item) for item in unit.capabilities],
        "artifacts": [artifact_key_to_payload(key) for key in unit.artifacts],
    }


def unit_from_payload(payload: Mapping[str, Any]) -> Unit:
    """Deserialize a unit payload.

    Args:
        payload: Serialized unit.

    Returns:
        Parsed unit.

    Raises:
        MirrorModelError: If required fields are missing or malformed.
    """
    unit_id = _required_string(payload, "id", "unit")
    return Unit(
        unit_id=unit_id,
        version=Version.parse(str(payload.get("version", ""))),
        requirements=tuple(
            _requirement_from_payload(item)
            for item in _object_rows(payload, "requirements", "unit")
        ),
        capabilities=tuple(
            _capability_from_payload(item)
            for item in _object_rows(payload, "capabilities", "unit")
        ),
        artifacts=tuple(
            artifact_key_from_payload(item) for item in _object_rows(payload, "artifacts", "unit")
        ),
        filter=_optional_string(payload, "filter"),
        touchpoint=_optional_string(payload, "touchpoint"),
        fragment_host=_optional_string(payload, "fragment_host"),
        properties=_string_mapping(payload.get("properties", {})),
    )


def artifact_key_to_payload(key: ArtifactKey) -> dict[str, str]:
    """Serialize an artifact key."""
    return {"classifier": key.classifier, "id": key.artifact_id, "version": str(key.version)}


def artifact_key_from_payload(payload: Mapping[str, Any]) -> ArtifactKey:
    """Deserialize an artifact key."""
    return ArtifactKey(
        classifier=_required_string(payload, "classifier", "artifact key"),
        artifact_id=_required_string(payload, "id", "artifact key"),
        version=Version.parse(str(payload.get("version", ""))),
    )


def descriptor_to_payload(descriptor: ArtifactDescriptor) -> dict[str, object]:
    """Serialize an artifact descriptor."""
    return {
        "key": artifact_key_to_payload(descriptor.key),
        "properties": dict(descriptor.properties),
        "repository_properties": dict(descriptor.repository_properties),
    }


def descriptor_from_payload(payload: Mapping[str, Any]) -> ArtifactDescriptor:
    """Deserialize an artifact descriptor."""
    key_payload = payload.get("key")
    if not isinstance(key_payload, Mapping):
        raise MirrorModelError("Artifact descriptor payload is missing its 'key' object.")
    return ArtifactDescriptor(
        key=artifact_key_from_payload(key_payload),
        properties=_string_mapping(payload.get("properties", {})),
        repository_properties=_string_mapping(payload.get("repository_properties", {})),
    )


def reference_to_payload(reference: RepositoryReference) -> dict[str, object]:
    """Serialize a repository reference."""
    return {"location": reference.location, "kind": reference.kind, "enabled": reference.enabled}


def reference_from_payload(payload: Mapping[str, Any]) -> RepositoryReference:
    """Deserialize a repository reference."""
    kind = payload.get("kind")
    if kind not in ("metadata", "artifact"):
        raise MirrorModelError(
            f"Invalid repository reference kind {kind!r}: expected 'metadata' or 'artifact'."
        )
    return RepositoryReference(
        location=_required_string(payload, "location", "repository reference"),
        kind=kind,
        enabled=bool(payload.get("enabled", True)),
    )


def _requirement_to_payload(requirement: Requirement) -> dict[str, object]:
    return {
        "namespace": requirement.namespace,
        "name": requirement.name,
        "range": str(requirement.range),
        "optional": requirement.optional,
        "greedy": requirement.greedy,
        "multiple": requirement.multiple,
        "filter": requirement.filter,
    }


def _requirement_from_payload(payload: Mapping[str, Any]) -> Requirement:
    return Requirement(
        namespace=_required_string(payload, "namespace", "requirement"),
        name=_required_string(payload, "name", "requirement"),
        range=VersionRange.parse(_optional_string(payload, "range")),
        optional=bool(payload.get("optional", False)),
        greedy=bool(payload.get("greedy", True)),
        multiple=bool(payload.get("multiple", False)),
        filter=_optional_string(payload, "filter"),
    )


def _capability_to_payload(capability: Capability) -> dict[str, object]:
    return {
        "namespace": capability.namespace,
        "name": capability.name,
        "version": str(capability.version),
        "attributes": dict(capability.attributes),
        "directives": dict(capability.directives),
    }


def _capability_from_payload(payload: Mapping[str, Any]) -> Capability:
    attributes = payload.get("attributes", {})
    return Capability(
        namespace=_required_string(payload, "namespace", "capability"),
        name=_required_string(payload, "name", "capability"),
        version=Version.parse(str(payload.get("version", ""))),
        attributes=dict(attributes) if isinstance(attributes, Mapping) else {},
        directives=_string_mapping(payload.get("directives", {})),
    )


def _required_string(payload: Mapping[str, Any], field_name: str, context: str) -> str:
    value = payload.get(field_name)
    if isinstance(value, str) and value.strip():
        return value
    raise MirrorModelError(f"Invalid {context} payload: field '{field_name}' must be a string.")


def _optional_string(payload: Mapping[str, Any], field_name: str) -> str | None:
    value = payload.get(field_name)
    return str(value) if value is not None else None


def _string_mapping(value: object) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(key): str(item) for key, item in value.items()}


def _object_rows(
    payload: Mapping[str, Any], field_name: str, context: str
) -> list[Mapping[str, Any]]:
    rows = payload.get(field_name, [])
    if not isinstance(rows, list) or not all(isinstance(row, Mapping) for row in rows):
        raise MirrorModelError(
            f"Invalid {context} payload: field '{field_name}' must be a list of objects."
        )
    return rows
