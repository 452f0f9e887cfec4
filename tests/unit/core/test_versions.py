"""Unit tests for versions and version ranges."""

from __future__ import annotations

import pytest

from core.errors import MirrorModelError
from core.versions import ANY_RANGE, Version, VersionRange


def test_version_parse_pads_missing_segments() -> None:
    """Short versions should pad missing numeric segments with zero."""
    assert Version.parse("1.2") == Version(1, 2, 0)


def test_version_orders_numerically_then_by_qualifier() -> None:
    """Numeric segments compare as numbers and an empty qualifier sorts first."""
    ordered = sorted(
        Version.parse(text) for text in ("1.10.0", "1.2.0.beta", "1.2.0", "1.2.0.alpha")
    )
    assert [str(item) for item in ordered] == ["1.2.0", "1.2.0.alpha", "1.2.0.beta", "1.10.0"]


def test_version_parse_rejects_non_numeric_segment() -> None:
    """Non-numeric segments should raise a model error."""
    with pytest.raises(MirrorModelError):
        Version.parse("1.x.0")
    assert True


def test_range_parse_half_open_interval() -> None:
    """Half-open ranges should include the minimum and exclude the maximum."""
    version_range = VersionRange.parse("[1.0,2.0)")
    assert (
        version_range.contains(Version.parse("1.0"))
        and version_range.contains(Version.parse("1.9.9"))
        and not version_range.contains(Version.parse("2.0"))
    )


def test_range_parse_exclusive_minimum() -> None:
    """Parenthesised minimum should exclude the lower bound."""
    version_range = VersionRange.parse("(1,2]")
    assert not version_range.contains(Version.parse("1")) and version_range.contains(
        Version.parse("2")
    )


def test_range_parse_bare_version_is_unbounded_minimum() -> None:
    """A bare version means at least that version."""
    version_range = VersionRange.parse("1.5")
    assert version_range.contains(Version.parse("99.0")) and not version_range.contains(
        Version.parse("1.4")
    )


def test_range_parse_empty_matches_everything() -> None:
    """Empty range text should yield the any-version range."""
    assert VersionRange.parse("") == ANY_RANGE and ANY_RANGE.contains(Version.parse("0"))


def test_range_exact_is_strict() -> None:
    """Closed single-version ranges should report as exact."""
    assert VersionRange.parse("[1.0,1.0]").is_exact and not VersionRange.parse("1.0").is_exact


def test_range_parse_rejects_inverted_bounds() -> None:
    """A maximum below the minimum should raise a model error."""
    with pytest.raises(MirrorModelError):
        VersionRange.parse("[2.0,1.0]")
    assert True


def test_range_string_round_trips_interval_text() -> None:
    """Interval ranges should render back into interval notation."""
    assert str(VersionRange.parse("[1.0,2.0)")) == "[1.0.0,2.0.0)"
