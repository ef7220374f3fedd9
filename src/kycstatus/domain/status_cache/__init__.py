"""Debounced batch cache for per-client KYC statuses."""

from __future__ import annotations

from .broadcast import Snapshot, Subscription, UpdateBroadcaster
from .coordinator import BatchCoordinator
from .errors import StatusCacheClosedError
from .facade import StatusQueryFacade, StatusStream
from .pending import PendingSet
from .ttl_cache import CacheEntry, TtlCache

__all__ = [
    "BatchCoordinator",
    "CacheEntry",
    "PendingSet",
    "Snapshot",
    "StatusCacheClosedError",
    "StatusQueryFacade",
    "StatusStream",
    "Subscription",
    "TtlCache",
    "UpdateBroadcaster",
]
