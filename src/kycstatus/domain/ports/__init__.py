"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import RawRecord, RecordFetcher

__all__ = ["RawRecord", "RecordFetcher"]
