"""Runtime configuration model for the mirror tool.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import DEFAULT_CHUNK_SIZE, DEFAULT_COMPARATOR_ID, DEFAULT_MAX_WORKERS
from core.errors import MirrorConfigError


@dataclass(frozen=True)
class MirrorConfig:
    """Validated runtime configuration.

    Attributes:
        max_workers: Default degree of parallelism for artifact transfers.
        comparator_id: Default content comparator identifier.
        chunk_size: Stream chunk size in bytes for copies and digests.
    """

    max_workers: int
    comparator_id: str
    chunk_size: int

    @classmethod
    def from_env(cls) -> "MirrorConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            MirrorConfigError: If environment values are invalid.
        """
        max_workers = _parse_positive_int(
            "UNITMIRROR_MAX_WORKERS", os.getenv("UNITMIRROR_MAX_WORKERS", str(DEFAULT_MAX_WORKERS))
        )
        chunk_size = _parse_positive_int(
            "UNITMIRROR_CHUNK_SIZE", os.getenv("UNITMIRROR_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))
        )
        comparator_id = os.getenv("UNITMIRROR_COMPARATOR", DEFAULT_COMPARATOR_ID).strip()
        if not comparator_id:
            raise MirrorConfigError(
                "Invalid UNITMIRROR_COMPARATOR value: expected a comparator id. "
                "Unset it to use the default checksum comparator."
            )
        return cls(max_workers=max_workers, comparator_id=comparator_id, chunk_size=chunk_size)


def _parse_positive_int(variable_name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        variable_name: Environment variable name for error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer value.

    Raises:
        MirrorConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise MirrorConfigError(
            f"Invalid {variable_name} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a positive numeric value."
        ) from error
    if value <= 0:
        raise MirrorConfigError(
            f"Invalid {variable_name} value: expected a positive integer, got {value}."
        )
    return value
