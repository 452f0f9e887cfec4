"""Queryable closure of units produced by slicing."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

from core.types import ArtifactKey, Unit
from core.versions import Version


class Closure:
    """Deduplicated, insertion-ordered set of units.

    Units are keyed by id and version; edges between them are not kept.
    """

    def __init__(self, units: Iterable[Unit] = ()) -> None:
        self._units: dict[tuple[str, Version], Unit] = {}
        for unit in units:
            self._units.setdefault(unit.identity, unit)

    def __iter__(self) -> Iterator[Unit]:
        return iter(self._units.values())

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, unit: object) -> bool:
        return isinstance(unit, Unit) and unit.identity in self._units

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Closure):
            return NotImplemented
        return set(self._units) == set(other._units)

    def __repr__(self) -> str:
        return f"Closure({', '.join(str(unit) for unit in self)})"

    @property
    def is_empty(self) -> bool:
        """Return whether the closure holds no units."""
        return not self._units

    def contains(self, unit_id: str, version: Version) -> bool:
        """Return whether a unit id/version pair is present."""
        return (unit_id, version) in self._units

    def query(self, predicate: Callable[[Unit], bool] | None = None) -> list[Unit]:
        """Return units matching a predicate, every unit when omitted."""
        if predicate is None:
            return list(self._units.values())
        return [unit for unit in self._units.values() if predicate(unit)]

    def artifact_keys(self) -> list[ArtifactKey]:
        """Return artifact keys of all units, first-seen order, no duplicates."""
        keys: dict[ArtifactKey, None] = {}
        for unit in self._units.values():
            for key in unit.artifacts:
                keys.setdefault(key, None)
        return list(keys)

    def latest_only(self) -> "Closure":
        """Return a closure keeping the highest version of each unit id."""
        latest: dict[str, Unit] = {}
        for unit in self._units.values():
            current = latest.get(unit.unit_id)
            if current is None or unit.version > current.version:
                latest[unit.unit_id] = unit
        return Closure(unit for unit in self._units.values() if latest[unit.unit_id] is unit)
