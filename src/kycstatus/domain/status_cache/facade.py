"""Public entry point for querying KYC statuses."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Hashable, Iterable
from logging import getLogger
from typing import TYPE_CHECKING, Self

from kycstatus.domain.classification import DEFAULT_DOCUMENT_SCHEMA, DocumentSchema
from kycstatus.domain.status import is_fully_verified

from .broadcast import UpdateBroadcaster
from .coordinator import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_INTER_REQUEST_DELAY_SECONDS,
    BatchCoordinator,
)
from .errors import StatusCacheClosedError
from .pending import PendingSet
from .ttl_cache import DEFAULT_TTL_SECONDS, TtlCache

if TYPE_CHECKING:
    from types import TracebackType

    from kycstatus.domain.ports.fetching import RecordFetcher
    from kycstatus.domain.status import StatusInfo

    from .broadcast import Snapshot, Subscription

log = getLogger(__name__)


class StatusStream[K: Hashable]:
    """Statuses for a fixed set of ids, refreshed on every cache broadcast.

    The first item is whatever is already cached; each later item follows one
    resolved fetch. Items only contain ids that have a fresh status.
    """

    def __init__(
        self,
        ids: tuple[K, ...],
        subscription: Subscription,
        cache: TtlCache[K, StatusInfo],
        wait_idle: Callable[[], Awaitable[None]],
    ) -> None:
        self._ids = ids
        self._subscription = subscription
        self._cache = cache
        self._wait_idle = wait_idle
        self._started = False

    @property
    def ids(self) -> tuple[K, ...]:
        return self._ids

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> dict[K, StatusInfo]:
        if not self._started:
            self._started = True
            return self._select(self._cache.snapshot())
        snapshot = await anext(self._subscription)
        return self._select(snapshot)

    async def resolved(self) -> dict[K, StatusInfo]:
        """Wait until every id has a status and return them, then close the stream.

        Statuses are accumulated across emissions, so an id stays resolved after
        eviction or expiry drops it from later snapshots. Returns early with what
        has resolved so far once the coordinator goes idle or the service closes.
        """

        merged: dict[K, StatusInfo] = {}
        wanted = set(self._ids)
        idle = asyncio.ensure_future(self._wait_idle())
        update: asyncio.Future[dict[K, StatusInfo] | None] | None = None
        try:
            while not wanted.issubset(merged):
                update = asyncio.ensure_future(self._next_update())
                await asyncio.wait((update, idle), return_when=asyncio.FIRST_COMPLETED)
                if not update.done():
                    for snapshot in self._subscription.drain():
                        merged.update(self._select(snapshot))
                    merged.update(self._select(self._cache.snapshot()))
                    break
                statuses = update.result()
                if statuses is None:
                    break
                merged.update(statuses)
        finally:
            idle.cancel()
            if update is not None:
                update.cancel()
            self.close()
        return {entity_id: merged[entity_id] for entity_id in self._ids if entity_id in merged}

    def close(self) -> None:
        self._subscription.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    async def _next_update(self) -> dict[K, StatusInfo] | None:
        try:
            return await anext(self)
        except StopAsyncIteration:
            return None

    def _select(self, snapshot: Snapshot) -> dict[K, StatusInfo]:
        return {entity_id: snapshot[entity_id] for entity_id in self._ids if entity_id in snapshot}


class StatusQueryFacade[K: Hashable]:
    """What the rest of the application talks to.

    One instance is built at startup and closed at shutdown; closing cancels the
    debounce timer and any running batch, clears the cache and ends every open
    stream.
    """

    def __init__(
        self,
        *,
        coordinator: BatchCoordinator[K],
        cache: TtlCache[K, StatusInfo],
        broadcaster: UpdateBroadcaster,
    ) -> None:
        self._coordinator = coordinator
        self._cache = cache
        self._broadcaster = broadcaster
        self._closed = False

    @classmethod
    def create(
        cls,
        fetcher: RecordFetcher[K],
        *,
        schema: DocumentSchema = DEFAULT_DOCUMENT_SCHEMA,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        inter_request_delay_seconds: float = DEFAULT_INTER_REQUEST_DELAY_SECONDS,
        fetch_timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> StatusQueryFacade[K]:
        cache: TtlCache[K, StatusInfo] = TtlCache(
            ttl_seconds=ttl_seconds, max_entries=max_entries, clock=clock
        )
        broadcaster = UpdateBroadcaster()
        coordinator = BatchCoordinator(
            fetcher=fetcher,
            cache=cache,
            pending=PendingSet(),
            broadcaster=broadcaster,
            schema=schema,
            debounce_seconds=debounce_seconds,
            inter_request_delay_seconds=inter_request_delay_seconds,
            fetch_timeout_seconds=fetch_timeout_seconds,
        )
        return cls(coordinator=coordinator, cache=cache, broadcaster=broadcaster)

    @property
    def coordinator(self) -> BatchCoordinator[K]:
        return self._coordinator

    def request_many(self, ids: Iterable[K]) -> StatusStream[K]:
        self._ensure_open()
        unique = tuple(dict.fromkeys(ids))
        subscription = self._broadcaster.subscribe()
        if unique:
            self._coordinator.request(unique)
        return StatusStream(unique, subscription, self._cache, self._coordinator.wait_idle)

    async def request_one(self, entity_id: K) -> StatusInfo:
        self._ensure_open()
        cached = self._cache.get(entity_id)
        if cached is not None:
            return cached

        with self._broadcaster.subscribe() as subscription:
            self._coordinator.request((entity_id,))
            async for snapshot in subscription:
                status = snapshot.get(entity_id)
                if status is not None:
                    return status
        raise StatusCacheClosedError(f"Status service closed before {entity_id!r} resolved")

    def read_cached(self, entity_id: K) -> StatusInfo | None:
        return self._cache.get(entity_id)

    def invalidate(self, entity_id: K) -> None:
        if self._cache.invalidate(entity_id):
            log.debug("Invalidated cached KYC status for %r", entity_id)

    def invalidate_all(self) -> None:
        self._cache.clear()
        log.debug("Invalidated all cached KYC statuses")

    def subscribe_to_updates(self) -> Subscription:
        return self._broadcaster.subscribe()

    async def is_verified(self, entity_id: K) -> bool:
        return is_fully_verified(await self.request_one(entity_id))

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._coordinator.aclose()
        self._broadcaster.close()
        self._cache.clear()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _ensure_open(self) -> None:
        if self._closed:
            raise StatusCacheClosedError("Status service is closed")
