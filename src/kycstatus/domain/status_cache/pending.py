"""Tracks entity ids whose record is currently being fetched."""

from __future__ import annotations

from collections.abc import Hashable


class PendingSet[K: Hashable]:
    def __init__(self) -> None:
        self._keys: set[K] = set()

    def is_pending(self, key: K) -> bool:
        return key in self._keys

    def mark_pending(self, key: K) -> None:
        if key in self._keys:
            raise ValueError(f"A fetch for {key!r} is already in flight")
        self._keys.add(key)

    def clear_pending(self, key: K) -> None:
        self._keys.discard(key)

    def clear(self) -> None:
        self._keys.clear()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys
