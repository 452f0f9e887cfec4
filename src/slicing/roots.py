"""Root unit selection from ``id[/range]`` specifications."""

from __future__ import annotations

from typing import Callable, Sequence

from core.constants import UNIT_NAMESPACE
from core.types import Requirement, Unit
from core.versions import VersionRange


def split_root_list(text: str | None, separator: str = ",") -> list[str]:
    """Split a separated list, keeping range brackets intact.

    A token opening a ``[`` or ``(`` range is re-joined with the following
    token, so ``"a/[1.0,2.0),b"`` yields ``["a/[1.0,2.0)", "b"]``.

    Args:
        text: Raw list text.
        separator: Token separator.

    Returns:
        Non-empty trimmed tokens.
    """
    if text is None or not text.strip():
        return []
    tokens = [token.strip() for token in text.split(separator)]
    tokens = [token for token in tokens if token]
    result: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        opens_range = "[" in token or "(" in token
        if opens_range and index + 1 < len(tokens):
            result.append(f"{token}{separator}{tokens[index + 1]}")
            index += 2
            continue
        result.append(token)
        index += 1
    return result


def parse_root_spec(spec: str) -> Requirement:
    """Turn ``id`` or ``id/range`` into a requirement on the unit id.

    Args:
        spec: Root specification.

    Returns:
        Requirement matching the unit's implicit capability.

    Raises:
        MirrorModelError: If the range is malformed.
    """
    segments = split_root_list(spec, "/")
    unit_id = segments[0] if segments else spec.strip()
    version_range = VersionRange.parse(segments[1]) if len(segments) > 1 else VersionRange()
    return Requirement(namespace=UNIT_NAMESPACE, name=unit_id, range=version_range)


def select_roots(
    root_specs: Sequence[str],
    lookup: Callable[[Requirement], Sequence[Unit]],
) -> list[Unit]:
    """Query the metadata for every unit matching the root specs.

    Args:
        root_specs: ``id`` or ``id/range`` strings.
        lookup: Metadata lookup collaborator.

    Returns:
        Matching units in spec order; may contain duplicates.
    """
    roots: list[Unit] = []
    for spec in root_specs:
        roots.extend(lookup(parse_root_spec(spec)))
    return roots
