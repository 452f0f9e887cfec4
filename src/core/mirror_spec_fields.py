"""Type-safe field parsing helpers for mirror-spec execution.

This module centralizes primitive parsing so mirror-spec loading and
execution produce consistent validation errors across CLI and SDK flows.
"""

from __future__ import annotations

from typing import Mapping, Sequence, cast

from core.errors import MirrorSpecError
from core.types import RepositoryKind, WriteMode

SUPPORTED_REPOSITORY_KINDS: tuple[str, ...] = ("metadata", "artifact", "both")
SUPPORTED_WRITE_MODES: tuple[str, ...] = ("append", "clean")


def required_string(args: Mapping[str, object], field_name: str) -> str:
    """Read a required string field from a mirror entry."""
    value = optional_string(args, field_name)
    if value is None:
        raise MirrorSpecError(f"Mirror-spec entry is missing required field '{field_name}'.")
    return value


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field from a mirror entry."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise MirrorSpecError(f"Mirror-spec field '{field_name}' must be a string when provided.")


def optional_int(args: Mapping[str, object], field_name: str) -> int | None:
    """Read an optional positive integer field."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MirrorSpecError(f"Mirror-spec field '{field_name}' must be an integer.")
    if value <= 0:
        raise MirrorSpecError(f"Mirror-spec field '{field_name}' must be positive, got {value}.")
    return value


def optional_bool(
    args: Mapping[str, object],
    field_name: str,
    default_value: bool,
) -> bool:
    """Read an optional boolean field."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool):
        return value
    raise MirrorSpecError(f"Mirror-spec field '{field_name}' must be true/false.")


def optional_tristate(args: Mapping[str, object], field_name: str) -> bool | None:
    """Read a boolean field where absence means ``None``."""
    if args.get(field_name) is None:
        return None
    return optional_bool(args, field_name, default_value=False)


def string_list(args: Mapping[str, object], field_name: str) -> tuple[str, ...]:
    """Read a list of non-empty strings; a single string is one item."""
    value = args.get(field_name)
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Sequence):
        raise MirrorSpecError(f"Mirror-spec field '{field_name}' must be a list of strings.")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise MirrorSpecError(
                f"Mirror-spec field '{field_name}' must contain non-empty strings."
            )
        items.append(item.strip())
    return tuple(items)


def string_mapping(args: Mapping[str, object], field_name: str) -> dict[str, str] | None:
    """Read a mapping of scalar values rendered as strings."""
    value = args.get(field_name)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise MirrorSpecError(f"Mirror-spec field '{field_name}' must be a mapping.")
    result: dict[str, str] = {}
    for key, item in value.items():
        if not isinstance(key, str) or isinstance(item, (Mapping, list, tuple)) or item is None:
            raise MirrorSpecError(
                f"Mirror-spec field '{field_name}' must map names to scalar values."
            )
        result[key] = str(item).lower() if isinstance(item, bool) else str(item)
    return result


def parse_repository_kind(args: Mapping[str, object]) -> RepositoryKind:
    """Parse the repository kind, ``both`` when omitted."""
    value = optional_string(args, "kind")
    if value is None:
        return "both"
    if value in SUPPORTED_REPOSITORY_KINDS:
        return cast(RepositoryKind, value)
    supported_rows = ", ".join(SUPPORTED_REPOSITORY_KINDS)
    raise MirrorSpecError(f"Invalid kind '{value}'. Use one of: {supported_rows}.")


def parse_write_mode(args: Mapping[str, object]) -> WriteMode:
    """Parse the destination write mode, ``append`` when omitted."""
    value = optional_string(args, "write_mode")
    if value is None:
        return "append"
    if value in SUPPORTED_WRITE_MODES:
        return cast(WriteMode, value)
    supported_rows = ", ".join(SUPPORTED_WRITE_MODES)
    raise MirrorSpecError(f"Invalid write_mode '{value}'. Use one of: {supported_rows}.")
