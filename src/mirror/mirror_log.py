"""Mirror and comparator log sinks.

Sinks receive status entries while a run progresses and are closed by the
owner of the run. File sinks write plain text by default and JSON lines when
the path ends in ``.jsonl`` or ``.json``.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
import threading
from typing import IO, Protocol

from core.constants import JSON_LOG_SUFFIXES
from core.errors import MirrorConfigError
from core.logging_config import get_logger
from core.status import Severity, Status, StatusEntry

_LOGGER = get_logger(__name__)


class MirrorLog(Protocol):
    """Sink for status records."""

    def log(self, entry: StatusEntry) -> None: ...

    def log_status(self, status: Status) -> None: ...

    def close(self) -> None: ...


class _FileMirrorLog:
    """Shared file handling for text and JSON-lines sinks."""

    def __init__(self, path: Path, root: str) -> None:
        self.path = path
        self.root = root
        self._lock = threading.Lock()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._handle: IO[str] | None = path.open("w", encoding="utf-8")
        except OSError as error:
            raise MirrorConfigError(
                f"Cannot open log file {path}: {error}. Choose a writable log location."
            ) from error

    def log(self, entry: StatusEntry) -> None:
        """Append one entry."""
        line = self._render(entry, datetime.now(timezone.utc).isoformat())
        with self._lock:
            if self._handle is None:
                return
            self._handle.write(line + "\n")
            self._handle.flush()

    def log_status(self, status: Status) -> None:
        """Append every entry of a status."""
        for entry in status.entries:
            self.log(entry)

    def close(self) -> None:
        """Close the file; later entries are dropped."""
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def _render(self, entry: StatusEntry, timestamp: str) -> str:
        raise NotImplementedError


class TextMirrorLog(_FileMirrorLog):
    """Tab-separated plain-text log."""

    def _render(self, entry: StatusEntry, timestamp: str) -> str:
        return "\t".join(
            (
                timestamp,
                self.root,
                entry.severity.label.upper(),
                entry.code,
                entry.subject or "-",
                entry.message,
            )
        )


class JsonLinesMirrorLog(_FileMirrorLog):
    """One JSON object per entry."""

    def _render(self, entry: StatusEntry, timestamp: str) -> str:
        return json.dumps(
            {
                "timestamp": timestamp,
                "root": self.root,
                "severity": entry.severity.label,
                "code": entry.code,
                "subject": entry.subject,
                "message": entry.message,
            },
            sort_keys=True,
        )


class StructuredMirrorLog:
    """Sink forwarding entries to the structured application logger."""

    def __init__(self, root: str) -> None:
        self.root = root

    def log(self, entry: StatusEntry) -> None:
        """Emit one entry at a level matching its severity."""
        fields = {
            "root": self.root,
            "code": entry.code,
            "subject": entry.subject,
            "message": entry.message,
        }
        if entry.severity == Severity.ERROR:
            _LOGGER.error("mirror_status", **fields)
        elif entry.severity == Severity.WARNING:
            _LOGGER.warning("mirror_status", **fields)
        else:
            _LOGGER.info("mirror_status", **fields)

    def log_status(self, status: Status) -> None:
        """Emit every entry of a status."""
        for entry in status.entries:
            self.log(entry)

    def close(self) -> None:
        """Nothing to release."""


def open_mirror_log(path: str | Path, root: str) -> MirrorLog:
    """Open a file sink, choosing the format from the file suffix.

    Args:
        path: Log file path.
        root: Log root name written with every entry.

    Returns:
        Text or JSON-lines sink.

    Raises:
        MirrorConfigError: If the file cannot be opened.
    """
    log_path = Path(path).expanduser().resolve()
    if log_path.suffix.lower() in JSON_LOG_SUFFIXES:
        return JsonLinesMirrorLog(log_path, root)
    return TextMirrorLog(log_path, root)
