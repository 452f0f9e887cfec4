"""Pluggable content comparators keyed by identifier.

Comparators decide whether two artifact byte streams are equivalent while
reading them in fixed-size chunks, so artifacts are never buffered whole.
Read failures yield an ``error`` result distinct from ``different``.
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
from typing import IO, Callable, Literal, Protocol

from core.constants import DEFAULT_CHUNK_SIZE, DEFAULT_COMPARATOR_ID
from core.errors import MirrorConfigError

CompareOutcome = Literal["equal", "different", "error"]

CHECKSUM_ALGORITHMS: dict[str, str] = {
    "sha-256": "sha256",
    "sha-512": "sha512",
    "sha-1": "sha1",
    "md5": "md5",
}


@dataclass(frozen=True)
class CompareResult:
    """Outcome of one comparison.

    Attributes:
        outcome: ``equal``, ``different`` or ``error``.
        reason: Failure or difference description.
        digest_a: Digest of the first stream when the comparator hashes.
        digest_b: Digest of the second stream when the comparator hashes.
    """

    outcome: CompareOutcome
    reason: str | None = None
    digest_a: str | None = None
    digest_b: str | None = None


class ContentComparator(Protocol):
    """Equality test between two artifact byte streams."""

    comparator_id: str

    def compare(self, stream_a: IO[bytes], stream_b: IO[bytes]) -> CompareResult: ...


def new_hasher(algorithm: str) -> "hashlib._Hash":
    """Create a hashlib object for a checksum algorithm name like ``sha-256``.

    Raises:
        MirrorConfigError: If the algorithm is unsupported.
    """
    hashlib_name = CHECKSUM_ALGORITHMS.get(algorithm)
    if hashlib_name is None:
        supported_rows = ", ".join(sorted(CHECKSUM_ALGORITHMS))
        raise MirrorConfigError(
            f"Unsupported checksum algorithm '{algorithm}'. Use one of: {supported_rows}."
        )
    return hashlib.new(hashlib_name)


def digest_stream(stream: IO[bytes], algorithm: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Return the hex digest of a stream, read chunk by chunk."""
    hasher = new_hasher(algorithm)
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return hasher.hexdigest()
        hasher.update(chunk)


class ChecksumComparator:
    """Compare streams by cryptographic digest."""

    def __init__(self, algorithm: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        new_hasher(algorithm)
        self.algorithm = algorithm
        self.comparator_id = f"checksum.{algorithm}"
        self._chunk_size = chunk_size

    def compare(self, stream_a: IO[bytes], stream_b: IO[bytes]) -> CompareResult:
        """Digest both streams and compare the digests."""
        try:
            digest_a = digest_stream(stream_a, self.algorithm, self._chunk_size)
            digest_b = digest_stream(stream_b, self.algorithm, self._chunk_size)
        except OSError as error:
            return CompareResult(outcome="error", reason=f"stream unreadable: {error}")
        if digest_a == digest_b:
            return CompareResult(outcome="equal", digest_a=digest_a, digest_b=digest_b)
        return CompareResult(
            outcome="different",
            reason=f"{self.algorithm} digest {digest_a} != {digest_b}",
            digest_a=digest_a,
            digest_b=digest_b,
        )


class ByteComparator:
    """Compare streams byte for byte, stopping at the first difference."""

    comparator_id = "bytes"

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    def compare(self, stream_a: IO[bytes], stream_b: IO[bytes]) -> CompareResult:
        """Walk both streams in lockstep."""
        offset = 0
        try:
            while True:
                chunk_a = _read_exactly(stream_a, self._chunk_size)
                chunk_b = _read_exactly(stream_b, self._chunk_size)
                if chunk_a != chunk_b:
                    return CompareResult(
                        outcome="different",
                        reason=f"content differs at or after byte {offset}",
                    )
                if not chunk_a:
                    return CompareResult(outcome="equal")
                offset += len(chunk_a)
        except OSError as error:
            return CompareResult(outcome="error", reason=f"stream unreadable: {error}")


def _read_exactly(stream: IO[bytes], size: int) -> bytes:
    """Read up to ``size`` bytes, looping over short reads."""
    parts: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


_REGISTRY: dict[str, Callable[[int], ContentComparator]] = {
    "bytes": ByteComparator,
    **{
        f"checksum.{algorithm}": (lambda size, name=algorithm: ChecksumComparator(name, size))
        for algorithm in CHECKSUM_ALGORITHMS
    },
}


def supported_comparators() -> tuple[str, ...]:
    """Return registered comparator identifiers."""
    return tuple(sorted(_REGISTRY))


def register_comparator(comparator_id: str, factory: Callable[[int], ContentComparator]) -> None:
    """Register a comparator factory taking the chunk size."""
    _REGISTRY[comparator_id] = factory


def resolve_comparator(
    comparator_id: str | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> ContentComparator:
    """Build the comparator registered under an identifier.

    Args:
        comparator_id: Registered id; the sha-256 checksum comparator when omitted.
        chunk_size: Read chunk size in bytes.

    Returns:
        Comparator instance.

    Raises:
        MirrorConfigError: If the id is unknown.
    """
    resolved_id = comparator_id or DEFAULT_COMPARATOR_ID
    factory = _REGISTRY.get(resolved_id)
    if factory is None:
        supported_rows = ", ".join(supported_comparators())
        raise MirrorConfigError(
            f"Unknown comparator '{resolved_id}'. Use one of: {supported_rows}."
        )
    return factory(chunk_size)
