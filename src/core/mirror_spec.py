"""Typed mirror-spec parsing for declarative mirror runs.

This module loads and validates YAML mirror-spec files used by the CLI.
One strict schema describes a list of mirror runs so the CLI and SDK
execute the same declarative description.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence, cast

from core.errors import MirrorDependencyError, MirrorSpecError
from core.mirror_spec_fields import optional_int, optional_string

MIRROR_ENTRY_KEYS = frozenset(
    {
        "sources",
        "destination",
        "kind",
        "write_mode",
        "destination_name",
        "roots",
        "baseline",
        "references",
        "log",
        "comparator_log",
        "slicing",
        "options",
    }
)
SLICING_KEYS = frozenset(
    {
        "environment",
        "include_optional",
        "everything_greedy",
        "force_filter",
        "strict_only",
        "follow_only_filtered",
        "latest_version_only",
        "install_time_like",
    }
)
OPTION_KEYS = frozenset(
    {
        "raw",
        "validate",
        "compare",
        "mirror_properties",
        "ignore_errors",
        "comparator",
        "workers",
        "verbose",
    }
)


@dataclass(frozen=True)
class MirrorSpecDefaults:
    """Default values applied to every mirror entry."""

    workers: int | None = None
    comparator: str | None = None


@dataclass(frozen=True)
class MirrorSpecEntry:
    """One mirror run from a mirror-spec file."""

    args: Mapping[str, object]
    slicing: Mapping[str, object] = field(default_factory=dict)
    options: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class MirrorSpec:
    """Validated mirror-spec root object."""

    version: int
    defaults: MirrorSpecDefaults
    mirrors: tuple[MirrorSpecEntry, ...]


def load_mirror_spec(spec_path: str) -> MirrorSpec:
    """Load and validate a YAML mirror-spec from disk.

    Args:
        spec_path: File path to YAML mirror-spec.

    Returns:
        Fully validated mirror-spec object.

    Raises:
        MirrorDependencyError: If PyYAML is unavailable.
        MirrorSpecError: If file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(spec_path)
    return parse_mirror_spec(payload)


def parse_mirror_spec(payload: object) -> MirrorSpec:
    """Validate an already-decoded mirror-spec payload.

    Raises:
        MirrorSpecError: If schema checks fail.
    """
    root_mapping = _expect_mapping(payload, "mirror spec root")
    _validate_keys(root_mapping, {"version", "defaults", "mirrors"}, "mirror spec root")
    version = _parse_version(root_mapping)
    defaults = _parse_defaults(root_mapping)
    mirrors = _parse_mirrors(root_mapping)
    return MirrorSpec(version=version, defaults=defaults, mirrors=mirrors)


def _load_yaml_payload(spec_path: str) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise MirrorDependencyError(
            "YAML mirror-spec support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    spec_file = Path(spec_path).expanduser().resolve()
    if not spec_file.exists():
        raise MirrorSpecError(
            f"Mirror spec file does not exist at {spec_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(spec_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise MirrorSpecError(
            f"Failed to read mirror spec at {spec_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise MirrorSpecError(
            f"Failed to parse YAML mirror spec at {spec_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise MirrorSpecError(
            f"Mirror spec at {spec_file} is empty. Define 'version' and 'mirrors'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise MirrorSpecError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise MirrorSpecError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise MirrorSpecError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise MirrorSpecError("Mirror spec field 'version' must be an integer. Set version: 1.")
    if raw_version != 1:
        raise MirrorSpecError(f"Unsupported mirror spec version {raw_version}. Use version: 1.")
    return raw_version


def _parse_defaults(root_mapping: Mapping[str, object]) -> MirrorSpecDefaults:
    raw_defaults = root_mapping.get("defaults")
    if raw_defaults is None:
        return MirrorSpecDefaults()
    defaults_mapping = _expect_mapping(raw_defaults, "mirror spec defaults")
    _validate_keys(defaults_mapping, {"workers", "comparator"}, "mirror spec defaults")
    return MirrorSpecDefaults(
        workers=optional_int(defaults_mapping, "workers"),
        comparator=optional_string(defaults_mapping, "comparator"),
    )


def _parse_mirrors(root_mapping: Mapping[str, object]) -> tuple[MirrorSpecEntry, ...]:
    raw_mirrors = root_mapping.get("mirrors")
    if raw_mirrors is None:
        raise MirrorSpecError(
            "Mirror spec missing required field 'mirrors'. Add a non-empty list of mirrors."
        )
    mirror_rows = _expect_sequence(raw_mirrors, "mirror spec mirrors")
    if len(mirror_rows) == 0:
        raise MirrorSpecError("Mirror spec field 'mirrors' must include at least one mirror.")
    return tuple(_parse_mirror(row, index) for index, row in enumerate(mirror_rows))


def _parse_mirror(mirror_value: object, mirror_index: int) -> MirrorSpecEntry:
    context = f"mirror spec entry #{mirror_index + 1}"
    mirror_mapping = _expect_mapping(mirror_value, context)
    _validate_keys(mirror_mapping, MIRROR_ENTRY_KEYS, context)
    slicing = _optional_section(mirror_mapping, "slicing", SLICING_KEYS, context)
    options = _optional_section(mirror_mapping, "options", OPTION_KEYS, context)
    args = {
        key: value for key, value in mirror_mapping.items() if key not in ("slicing", "options")
    }
    return MirrorSpecEntry(args=args, slicing=slicing, options=options)


def _optional_section(
    mirror_mapping: Mapping[str, object],
    section_name: str,
    allowed_keys: frozenset[str],
    context: str,
) -> Mapping[str, object]:
    raw_section = mirror_mapping.get(section_name)
    if raw_section is None:
        return {}
    section_context = f"{context} {section_name}"
    section_mapping = _expect_mapping(raw_section, section_context)
    _validate_keys(section_mapping, allowed_keys, section_context)
    return section_mapping


def _validate_keys(
    mapping: Mapping[str, object],
    allowed_keys: frozenset[str] | set[str],
    context: str,
) -> None:
    unknown_keys = sorted(set(mapping) - set(allowed_keys))
    if unknown_keys:
        raise MirrorSpecError(f"Invalid {context}: unknown fields {', '.join(unknown_keys)}.")
