"""Unit versions and version ranges.

Versions follow the ``major.minor.micro.qualifier`` layout: three numeric
segments compared numerically, then a qualifier compared as a string.
Ranges use interval notation such as ``[1.0,2.0)``.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from core.errors import MirrorModelError

_QUALIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_-]*$")


@dataclass(frozen=True, order=True)
class Version:
    """Totally ordered unit version.

    Attributes:
        major: First numeric segment.
        minor: Second numeric segment.
        micro: Third numeric segment.
        qualifier: Free-form suffix; empty sorts before any qualifier.
    """

    major: int = 0
    minor: int = 0
    micro: int = 0
    qualifier: str = ""

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse version text like ``1``, ``1.2.3`` or ``1.2.3.v20240101``.

        Args:
            text: Raw version string.

        Returns:
            Parsed version.

        Raises:
            MirrorModelError: If text is not a valid version.
        """
        stripped = text.strip()
        if not stripped:
            return EMPTY_VERSION
        segments = stripped.split(".", 3)
        numbers: list[int] = []
        for segment in segments[:3]:
            if not segment.isdigit():
                raise MirrorModelError(
                    f"Invalid version '{text}': segment '{segment}' is not a number. "
                    "Use major.minor.micro.qualifier."
                )
            numbers.append(int(segment))
        while len(numbers) < 3:
            numbers.append(0)
        qualifier = segments[3] if len(segments) == 4 else ""
        if not _QUALIFIER_PATTERN.match(qualifier):
            raise MirrorModelError(
                f"Invalid version '{text}': qualifier '{qualifier}' may only contain "
                "letters, digits, '_' and '-'."
            )
        return cls(major=numbers[0], minor=numbers[1], micro=numbers[2], qualifier=qualifier)

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.micro}"
        return f"{base}.{self.qualifier}" if self.qualifier else base


EMPTY_VERSION = Version()


@dataclass(frozen=True)
class VersionRange:
    """Interval of versions with inclusive or exclusive bounds.

    Attributes:
        minimum: Lower bound.
        include_minimum: Whether the lower bound itself matches.
        maximum: Upper bound, ``None`` for unbounded.
        include_maximum: Whether the upper bound itself matches.
    """

    minimum: Version = EMPTY_VERSION
    include_minimum: bool = True
    maximum: Version | None = None
    include_maximum: bool = False

    @classmethod
    def parse(cls, text: str | None) -> "VersionRange":
        """Parse range text.

        ``[1.0,2.0)`` and ``(1,2]`` are intervals, a bare version ``1.0``
        means "at least 1.0", and empty text matches every version.

        Args:
            text: Raw range string or ``None``.

        Returns:
            Parsed version range.

        Raises:
            MirrorModelError: If the range text is malformed.
        """
        if text is None or not text.strip():
            return ANY_RANGE
        stripped = text.strip()
        if stripped[0] not in "[(":
            return cls(minimum=Version.parse(stripped))
        if stripped[-1] not in "])" or "," not in stripped:
            raise MirrorModelError(
                f"Invalid version range '{text}': expected [min,max], (min,max), "
                "or a single minimum version."
            )
        low_text, high_text = stripped[1:-1].split(",", 1)
        minimum = Version.parse(low_text)
        maximum = Version.parse(high_text)
        if maximum < minimum:
            raise MirrorModelError(
                f"Invalid version range '{text}': maximum is lower than minimum."
            )
        return cls(
            minimum=minimum,
            include_minimum=stripped[0] == "[",
            maximum=maximum,
            include_maximum=stripped[-1] == "]",
        )

    @classmethod
    def exact(cls, version: Version) -> "VersionRange":
        """Build a range matching exactly one version."""
        return cls(minimum=version, include_minimum=True, maximum=version, include_maximum=True)

    @property
    def is_exact(self) -> bool:
        """Return whether the range admits exactly one version."""
        return (
            self.maximum == self.minimum and self.include_minimum and self.include_maximum
        )

    def contains(self, version: Version) -> bool:
        """Return whether a version falls inside the range."""
        if version < self.minimum or (version == self.minimum and not self.include_minimum):
            return False
        if self.maximum is None:
            return True
        if version > self.maximum:
            return False
        return version != self.maximum or self.include_maximum

    def __str__(self) -> str:
        if self.maximum is None:
            return str(self.minimum)
        low = "[" if self.include_minimum else "("
        high = "]" if self.include_maximum else ")"
        return f"{low}{self.minimum},{self.maximum}{high}"


ANY_RANGE = VersionRange()
