"""Severity-ranked status records.

Slicing and mirroring accumulate status entries instead of raising for
recoverable problems. A status' severity is the maximum of its entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
import threading
from typing import Iterable


class Severity(IntEnum):
    """Ordered severity levels."""

    OK = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @property
    def label(self) -> str:
        """Return lowercase label for rendering."""
        return self.name.lower()


@dataclass(frozen=True)
class StatusEntry:
    """One recorded message.

    Attributes:
        severity: Entry severity.
        code: Stable machine-readable code, e.g. ``unsatisfied_requirement``.
        message: Human-readable message.
        subject: Optional unit or artifact the entry is about.
    """

    severity: Severity
    code: str
    message: str
    subject: str | None = None


@dataclass(frozen=True)
class Status:
    """Immutable collection of status entries."""

    entries: tuple[StatusEntry, ...] = ()

    @property
    def severity(self) -> Severity:
        """Return the highest entry severity, OK when empty."""
        return max((entry.severity for entry in self.entries), default=Severity.OK)

    @property
    def is_ok(self) -> bool:
        """Return whether nothing above INFO was recorded."""
        return self.severity <= Severity.INFO

    def merge(self, other: "Status") -> "Status":
        """Return a status holding entries of both operands."""
        return Status(entries=self.entries + other.entries)

    def with_severity(self, severity: Severity) -> tuple[StatusEntry, ...]:
        """Return entries recorded at exactly the given severity."""
        return tuple(entry for entry in self.entries if entry.severity == severity)


OK_STATUS = Status()


class StatusCollector:
    """Thread-safe accumulator producing an immutable ``Status``."""

    def __init__(self, entries: Iterable[StatusEntry] = ()) -> None:
        self._entries: list[StatusEntry] = list(entries)
        self._lock = threading.Lock()

    def add(
        self,
        severity: Severity,
        code: str,
        message: str,
        subject: str | None = None,
    ) -> StatusEntry:
        """Record one entry and return it."""
        entry = StatusEntry(severity=severity, code=code, message=message, subject=subject)
        with self._lock:
            self._entries.append(entry)
        return entry

    def extend(self, status: Status) -> None:
        """Record every entry of another status."""
        with self._lock:
            self._entries.extend(status.entries)

    @property
    def severity(self) -> Severity:
        """Return the highest severity recorded so far."""
        with self._lock:
            return max((entry.severity for entry in self._entries), default=Severity.OK)

    def freeze(self) -> Status:
        """Return an immutable snapshot of recorded entries."""
        with self._lock:
            return Status(entries=tuple(self._entries))
