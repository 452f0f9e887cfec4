"""Cooperative cancellation for long-running mirror work."""

from __future__ import annotations

import threading

from core.errors import MirrorCancelledError


class CancellationToken:
    """Flag shared between a caller and the slicer or mirror workers."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str = "cancelled by caller") -> None:
        """Request cancellation; idempotent."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        """Return whether cancellation was requested."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """Return the reason passed to ``cancel``."""
        return self._reason

    def raise_if_cancelled(self, stage: str) -> None:
        """Raise when cancellation was requested.

        Args:
            stage: Name of the step checking the token.

        Raises:
            MirrorCancelledError: If the token is cancelled.
        """
        if self._event.is_set():
            raise MirrorCancelledError(f"Mirror run cancelled during {stage}: {self._reason}.")
