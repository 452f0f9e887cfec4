"""JSON I/O helpers for repository index files."""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile

from core.errors import MirrorRepositoryError


def read_json_file(payload_path: Path) -> dict[str, object]:
    """Read a JSON object from disk with traceable errors."""
    try:
        payload = json.loads(payload_path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise MirrorRepositoryError(
            f"Missing repository index at {payload_path}. Check the repository location."
        ) from error
    except json.JSONDecodeError as error:
        raise MirrorRepositoryError(
            f"Failed to parse JSON at {payload_path}: {error.msg}. Recreate the repository index."
        ) from error
    except OSError as error:
        raise MirrorRepositoryError(
            f"Failed to read index file {payload_path}: {error}."
        ) from error
    if not isinstance(payload, dict):
        raise MirrorRepositoryError(
            f"Failed to parse JSON at {payload_path}: expected object at top level."
        )
    return payload


def write_json_file_atomic(payload_path: Path, payload: object) -> None:
    """Replace a JSON file so readers see either the old or the new content."""
    temp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=payload_path.parent,
            prefix=f".{payload_path.name}.",
            delete=False,
        ) as handle:
            temp_name = handle.name
            handle.write(json.dumps(payload, indent=2, sort_keys=True) + "\n")
        os.replace(temp_name, payload_path)
    except OSError as error:
        if temp_name is not None and os.path.exists(temp_name):
            os.unlink(temp_name)
        raise MirrorRepositoryError(
            f"Failed to write index file {payload_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
