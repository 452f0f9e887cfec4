"""Unit tests for mirror log sinks."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from core.errors import MirrorConfigError
from core.status import Severity, StatusEntry
from mirror.mirror_log import JsonLinesMirrorLog, TextMirrorLog, open_mirror_log

_ENTRY = StatusEntry(Severity.WARNING, "comparator_mismatch", "differs", subject="binary/a/1.0.0")


def test_open_mirror_log_writes_text_lines(tmp_path: Path) -> None:
    """Text sinks should write tab-separated rows."""
    log = open_mirror_log(tmp_path / "mirror.log", "artifact-mirror")
    log.log(_ENTRY)
    log.close()

    fields = (tmp_path / "mirror.log").read_text(encoding="utf-8").strip().split("\t")

    assert isinstance(log, TextMirrorLog) and fields[1:] == [
        "artifact-mirror",
        "WARNING",
        "comparator_mismatch",
        "binary/a/1.0.0",
        "differs",
    ]


def test_open_mirror_log_json_suffix_writes_objects(tmp_path: Path) -> None:
    """JSON-lines sinks should write one object per entry."""
    log = open_mirror_log(tmp_path / "logs" / "compare.jsonl", "comparator")
    log.log(_ENTRY)
    log.log(StatusEntry(Severity.OK, "compare_equal", "equal"))
    log.close()

    rows = [
        json.loads(line)
        for line in (tmp_path / "logs" / "compare.jsonl").read_text(encoding="utf-8").splitlines()
    ]

    assert isinstance(log, JsonLinesMirrorLog) and [row["code"] for row in rows] == [
        "comparator_mismatch",
        "compare_equal",
    ] and rows[1]["subject"] is None


def test_mirror_log_drops_entries_after_close(tmp_path: Path) -> None:
    """Entries logged after close should be ignored."""
    log = open_mirror_log(tmp_path / "mirror.log", "artifact-mirror")
    log.close()
    log.log(_ENTRY)

    assert (tmp_path / "mirror.log").read_text(encoding="utf-8") == ""


def test_open_mirror_log_unwritable_location_raises_error(tmp_path: Path) -> None:
    """Unopenable log paths should raise a config error."""
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")

    with pytest.raises(MirrorConfigError):
        open_mirror_log(blocker / "mirror.log", "artifact-mirror")

    assert True
