"""Unit tests for content comparators."""

from __future__ import annotations

import io

import pytest

from compare.artifact_comparison import compare_artifact
from compare.comparators import (
    ByteComparator,
    ChecksumComparator,
    resolve_comparator,
    supported_comparators,
)
from core.errors import MirrorConfigError
from tests.repository_builders import artifact_key, artifact_repository, sha256_hex


class _FailingStream(io.BytesIO):
    def read(self, size: int | None = -1) -> bytes:
        raise OSError("disk vanished")


def test_checksum_comparator_reports_equal_digests() -> None:
    """Identical content should compare equal with matching digests."""
    result = ChecksumComparator("sha-256", chunk_size=3).compare(
        io.BytesIO(b"payload"), io.BytesIO(b"payload")
    )
    assert result.outcome == "equal" and result.digest_a == sha256_hex(b"payload")


def test_checksum_comparator_reports_different_content() -> None:
    """Different content should compare different."""
    result = ChecksumComparator("sha-256").compare(io.BytesIO(b"a"), io.BytesIO(b"b"))
    assert result.outcome == "different" and result.digest_a != result.digest_b


def test_byte_comparator_detects_length_difference() -> None:
    """A stream that is a prefix of the other should not compare equal."""
    result = ByteComparator(chunk_size=2).compare(io.BytesIO(b"abcd"), io.BytesIO(b"abc"))
    assert result.outcome == "different"


def test_byte_comparator_equal_streams() -> None:
    """Equal streams read in small chunks should compare equal."""
    result = ByteComparator(chunk_size=2).compare(io.BytesIO(b"abcde"), io.BytesIO(b"abcde"))
    assert result.outcome == "equal"


def test_comparator_read_failure_is_error_not_different() -> None:
    """Unreadable streams should yield an error outcome."""
    result = ByteComparator().compare(_FailingStream(), io.BytesIO(b"abc"))
    assert result.outcome == "error" and "disk vanished" in (result.reason or "")


def test_resolve_comparator_defaults_to_sha256() -> None:
    """Omitting the id should select the sha-256 checksum comparator."""
    assert resolve_comparator().comparator_id == "checksum.sha-256"


def test_resolve_comparator_unknown_id_raises_error() -> None:
    """Unknown comparator ids should raise a config error."""
    with pytest.raises(MirrorConfigError):
        resolve_comparator("fuzzy")
    assert "bytes" in supported_comparators()


def test_compare_artifact_across_repositories() -> None:
    """Artifacts with the same bytes in two repositories should compare equal."""
    key = artifact_key("lib")
    first = artifact_repository({key: b"jar"}, location="mem:a")
    second = artifact_repository({key: b"jar"}, location="mem:b")

    assert compare_artifact(ByteComparator(), key, first, second).outcome == "equal"


def test_compare_artifact_missing_in_second_repository_is_error() -> None:
    """A key absent from one side should be an error result."""
    key = artifact_key("lib")
    first = artifact_repository({key: b"jar"}, location="mem:a")
    second = artifact_repository({}, location="mem:b")

    assert compare_artifact(ByteComparator(), key, first, second).outcome == "error"


def test_compare_artifact_exclusions_skip_content() -> None:
    """Excluded descriptors should compare equal without reading."""
    key = artifact_key("lib")
    first = artifact_repository({key: b"jar"}, location="mem:a")
    second = artifact_repository({key: b"other"}, location="mem:b")

    result = compare_artifact(
        ByteComparator(),
        key,
        first,
        second,
        exclusions=lambda descriptor: descriptor.key.artifact_id == "lib",
    )

    assert result.outcome == "equal" and result.reason == "excluded from comparison"
