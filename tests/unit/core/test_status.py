"""Unit tests for status records."""

from __future__ import annotations

from core.status import OK_STATUS, Severity, StatusCollector


def test_empty_status_is_ok() -> None:
    """A status without entries should report OK."""
    assert OK_STATUS.severity == Severity.OK and OK_STATUS.is_ok


def test_status_severity_is_maximum_of_entries() -> None:
    """Collected entries should roll up to the highest severity."""
    collector = StatusCollector()
    collector.add(Severity.INFO, "note", "informational")
    collector.add(Severity.ERROR, "broken", "failure", subject="lib@1.0.0")
    collector.add(Severity.WARNING, "odd", "warning")

    status = collector.freeze()

    assert status.severity == Severity.ERROR and not status.is_ok


def test_status_merge_keeps_entries_of_both_operands() -> None:
    """Merging should concatenate entries in order."""
    first = StatusCollector()
    first.add(Severity.WARNING, "a", "first")
    second = StatusCollector()
    second.add(Severity.INFO, "b", "second")

    merged = first.freeze().merge(second.freeze())

    assert [entry.code for entry in merged.entries] == ["a", "b"]


def test_status_with_severity_filters_entries() -> None:
    """Entries should be selectable by exact severity."""
    collector = StatusCollector()
    collector.add(Severity.WARNING, "a", "first")
    collector.add(Severity.ERROR, "b", "second")
    assert [entry.code for entry in collector.freeze().with_severity(Severity.WARNING)] == ["a"]


def test_severity_label_is_lowercase_name() -> None:
    """Severity labels should render in lowercase."""
    assert Severity.WARNING.label == "warning"
