"""Unit tests for mirror-spec parsing and request building."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import MirrorConfig
from core.errors import MirrorSpecError
from core.mirror_spec import load_mirror_spec, parse_mirror_spec
from core.mirror_spec_execution import build_mirror_request
from tests.fixture_paths import fixture_path

_CONFIG = MirrorConfig(max_workers=4, comparator_id="checksum.sha-256", chunk_size=1024)


def test_load_mirror_spec_valid_file_parses_entries() -> None:
    """Valid mirror spec should parse defaults and every mirror entry."""
    spec = load_mirror_spec(str(fixture_path("mirror_spec/valid_mirror.yaml")))

    assert (
        spec.version == 1
        and spec.defaults.workers == 2
        and spec.defaults.comparator == "bytes"
        and len(spec.mirrors) == 2
        and spec.mirrors[0].options["compare"] is True
    )


def test_build_mirror_request_maps_fields() -> None:
    """Mirror entries should translate into requests with policy and options."""
    spec = load_mirror_spec(str(fixture_path("mirror_spec/valid_mirror.yaml")))

    request = build_mirror_request(spec.mirrors[0], spec.defaults, _CONFIG)

    assert (
        [source.location for source in request.sources] == ["repos/source-a", "repos/source-b"]
        and request.destinations[0].append is False
        and request.root_specs == ("app/[1.0,2.0)", "tools")
        and request.policy.include_optional_dependencies is False
        and request.policy.environment == {"os": "linux", "ws": "gtk"}
        and request.policy.force_filter_to is True
        and request.options.compare is True
        and request.options.raw is False
        and request.options.failure_policy == "best_effort"
        and request.options.comparator_id == "bytes"
        and request.options.max_workers == 2
        and request.options.chunk_size == 1024
    )


def test_build_mirror_request_accepts_single_source_string() -> None:
    """A single source string should become a one-element source list."""
    spec = load_mirror_spec(str(fixture_path("mirror_spec/valid_mirror.yaml")))

    request = build_mirror_request(spec.mirrors[1], spec.defaults, _CONFIG)

    assert (
        [source.location for source in request.sources] == ["repos/artifacts-only"]
        and request.sources[0].kind == "artifact"
        and request.mirror_references is False
        and request.options.failure_policy == "fail_fast"
    )


def test_load_mirror_spec_unknown_option_raises_error() -> None:
    """Unknown option keys should be rejected."""
    with pytest.raises(MirrorSpecError):
        load_mirror_spec(str(fixture_path("mirror_spec/unknown_option.yaml")))
    assert True


def test_load_mirror_spec_unsupported_version_raises_error() -> None:
    """Only version 1 specs should be accepted."""
    with pytest.raises(MirrorSpecError):
        load_mirror_spec(str(fixture_path("mirror_spec/invalid_version.yaml")))
    assert True


def test_load_mirror_spec_missing_mirrors_raises_error() -> None:
    """A spec without mirrors should be rejected."""
    with pytest.raises(MirrorSpecError):
        load_mirror_spec(str(fixture_path("mirror_spec/missing_mirrors.yaml")))
    assert True


def test_load_mirror_spec_missing_file_raises_error(tmp_path: Path) -> None:
    """A missing file should raise a spec error."""
    with pytest.raises(MirrorSpecError):
        load_mirror_spec(str(tmp_path / "absent.yaml"))
    assert True


def test_build_mirror_request_invalid_kind_raises_error() -> None:
    """Unsupported repository kinds should be rejected."""
    spec = load_mirror_spec(str(fixture_path("mirror_spec/invalid_kind.yaml")))

    with pytest.raises(MirrorSpecError):
        build_mirror_request(spec.mirrors[0], spec.defaults, _CONFIG)

    assert True


def test_parse_mirror_spec_rejects_non_boolean_flag() -> None:
    """Boolean options with other types should raise a spec error."""
    spec = parse_mirror_spec(
        {
            "version": 1,
            "mirrors": [
                {"sources": ["a"], "destination": "b", "options": {"validate": "yes"}},
            ],
        }
    )

    with pytest.raises(MirrorSpecError):
        build_mirror_request(spec.mirrors[0], spec.defaults, _CONFIG)

    assert True


def test_build_mirror_request_baseline_enables_compare() -> None:
    """A baseline repository should turn content comparison on."""
    spec = parse_mirror_spec(
        {
            "version": 1,
            "mirrors": [{"sources": ["a"], "destination": "b", "baseline": "repos/previous"}],
        }
    )

    request = build_mirror_request(spec.mirrors[0], spec.defaults, _CONFIG)

    assert request.baseline_location == "repos/previous" and request.options.compare is True
