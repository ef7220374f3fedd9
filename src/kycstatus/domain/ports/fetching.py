"""Ports for fetching raw KYC records."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from typing import Protocol, runtime_checkable

RawRecord = Mapping[str, object]


@runtime_checkable
class RecordFetcher[K: Hashable](Protocol):
    """Async port returning one entity's raw verification record.

    ``None`` means the backend holds no record for the entity. Transport errors
    and timeouts are raised; the caller decides how to degrade.
    """

    async def fetch_record(self, entity_id: K) -> RawRecord | None: ...


__all__ = ["RawRecord", "RecordFetcher"]
