"""Freshness-bounded key/value store for classified statuses."""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from kycstatus.config.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class CacheEntry[K, V]:
    key: K
    value: V
    written_at: float


class TtlCache[K: Hashable, V]:
    """Cache whose reads only return entries younger than ``ttl_seconds``.

    Stale entries stay stored until they are overwritten, invalidated or evicted;
    reads simply treat them as absent. When ``max_entries`` is set, writing a new
    key beyond the bound evicts the least recently written entry, which is also
    the stalest one.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ConfigurationError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries is not None and max_entries < 1:
            raise ConfigurationError(f"max_entries must be at least 1, got {max_entries}")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[K, CacheEntry[K, V]] = OrderedDict()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry, self._clock()):
            return None
        return entry.value

    def is_fresh(self, key: K) -> bool:
        return self.get(key) is not None

    def put(self, key: K, value: V) -> None:
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(key=key, value=value, written_at=self._clock())
        self._evict_overflow()

    def invalidate(self, key: K) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> Mapping[K, V]:
        """Read-only view of every fresh entry at this instant."""

        now = self._clock()
        return MappingProxyType(
            {key: entry.value for key, entry in self._entries.items() if self._is_fresh(entry, now)}
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _is_fresh(self, entry: CacheEntry[K, V], now: float) -> bool:
        return now - entry.written_at < self._ttl

    def _evict_overflow(self) -> None:
        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("Evicted status cache entry for %r", evicted)
