"""Unit tests for root specification parsing."""

from __future__ import annotations

import pytest

from core.errors import MirrorModelError
from slicing.roots import parse_root_spec, select_roots, split_root_list
from tests.repository_builders import make_unit, metadata_repository, version


def test_split_root_list_keeps_range_commas() -> None:
    """Commas inside a version range should not split the token."""
    assert split_root_list("app/[1.0,2.0), tools ,, lib") == ["app/[1.0,2.0)", "tools", "lib"]


def test_split_root_list_blank_text_is_empty() -> None:
    """Blank or missing text should yield no tokens."""
    assert split_root_list(None) == [] and split_root_list("   ") == []


def test_parse_root_spec_with_range() -> None:
    """An id/range spec should constrain the implicit unit capability."""
    requirement = parse_root_spec("app/[1.0,2.0)")

    assert (
        requirement.name == "app"
        and requirement.range.contains(version("1.5"))
        and not requirement.range.contains(version("2.0"))
    )


def test_parse_root_spec_bare_id_matches_any_version() -> None:
    """A bare id should match every version."""
    assert parse_root_spec("tools").range.contains(version("99.0"))


def test_parse_root_spec_malformed_range_raises_error() -> None:
    """Malformed ranges should raise a model error."""
    with pytest.raises(MirrorModelError):
        parse_root_spec("app/[1.0,oops")
    assert True


def test_select_roots_queries_each_spec() -> None:
    """Every matching unit for each spec should be returned in order."""
    repository = metadata_repository(
        [make_unit("app", "1.0"), make_unit("app", "2.0"), make_unit("tools", "0.1")]
    )

    roots = select_roots(["app/[1.0,2.0)", "tools", "unknown"], repository.lookup)

    assert [str(unit) for unit in roots] == ["app@1.0.0", "tools@0.1.0"]
