"""Status cache error definitions."""

from __future__ import annotations


class StatusCacheClosedError(RuntimeError):
    """Raised when the status cache is used after shutdown."""
