"""Mirror exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class MirrorError(Exception):
    """Base exception for all mirror failures."""


class MirrorConfigError(MirrorError):
    """Raised for invalid runtime or mirror configuration."""


class MirrorModelError(MirrorError):
    """Raised for malformed versions, ranges, filters, or unit payloads."""


class MirrorRepositoryError(MirrorError):
    """Raised when a repository cannot be opened, read, or written."""


class MirrorSlicingError(MirrorError):
    """Raised when closure computation fails fatally."""


class MirrorTransferError(MirrorError):
    """Raised for artifact transfer failures."""


class MirrorCancelledError(MirrorError):
    """Raised when a run is cancelled through its cancellation token."""


class MirrorDependencyError(MirrorError):
    """Raised when an optional runtime dependency is missing."""


class MirrorSpecError(MirrorError):
    """Raised for invalid or unsupported mirror-spec configuration."""
