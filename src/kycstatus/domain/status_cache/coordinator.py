"""Debounced, deduplicated, paced batch fetching of KYC statuses."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Hashable, Iterable
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from kycstatus.config.errors import ConfigurationError
from kycstatus.domain.classification import DEFAULT_DOCUMENT_SCHEMA, DocumentSchema, classify
from kycstatus.domain.status import NotVerified

from .errors import StatusCacheClosedError

if TYPE_CHECKING:
    from kycstatus.domain.ports.fetching import RawRecord, RecordFetcher
    from kycstatus.domain.status import StatusInfo

    from .broadcast import UpdateBroadcaster
    from .pending import PendingSet
    from .ttl_cache import TtlCache

log = getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_INTER_REQUEST_DELAY_SECONDS = 0.1

type Classifier = Callable[[RawRecord | None], StatusInfo]


class BatchCoordinator[K: Hashable]:
    """Collects requested ids and resolves them one at a time.

    ``request`` merges ids into the current batch and restarts the debounce
    timer. When the timer fires, ids that are fresh in the cache or already in
    flight are dropped and the rest are fetched sequentially in request order.
    At least ``inter_request_delay_seconds`` separates the end of one fetch from
    the start of the next, across consecutive batches too. Each resolved id is
    classified, cached and broadcast before the next fetch starts.

    A failed fetch never aborts the batch: the id degrades to ``NotVerified``
    carrying the error message. There is no retry; callers request again.

    If the timer fires while a batch is still running, the new ids wait for that
    batch to finish, so at most one fetch is ever in flight.
    """

    def __init__(
        self,
        *,
        fetcher: RecordFetcher[K],
        cache: TtlCache[K, StatusInfo],
        pending: PendingSet[K],
        broadcaster: UpdateBroadcaster,
        schema: DocumentSchema = DEFAULT_DOCUMENT_SCHEMA,
        classifier: Classifier | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        inter_request_delay_seconds: float = DEFAULT_INTER_REQUEST_DELAY_SECONDS,
        fetch_timeout_seconds: float | None = None,
    ) -> None:
        if debounce_seconds < 0:
            raise ConfigurationError(
                f"debounce_seconds must be non-negative, got {debounce_seconds}"
            )
        if inter_request_delay_seconds < 0:
            raise ConfigurationError(
                "inter_request_delay_seconds must be non-negative, "
                f"got {inter_request_delay_seconds}"
            )
        if fetch_timeout_seconds is not None and fetch_timeout_seconds <= 0:
            raise ConfigurationError(
                f"fetch_timeout_seconds must be positive, got {fetch_timeout_seconds}"
            )

        self._fetcher = fetcher
        self._cache = cache
        self._pending = pending
        self._broadcaster = broadcaster
        self._schema = schema
        self._classify = classifier or partial(classify, schema=schema)
        self._debounce = debounce_seconds
        self._delay = inter_request_delay_seconds
        self._fetch_timeout = fetch_timeout_seconds

        # dict keys: set semantics with insertion order
        self._batch: dict[K, None] = {}
        self._timer: asyncio.TimerHandle | None = None
        self._active: asyncio.Task[None] | None = None
        self._flush_after_active = False
        # loop time of the last finished fetch; pacing spans batches
        self._last_fetch_done: float | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    @property
    def is_idle(self) -> bool:
        return self._idle.is_set()

    @property
    def queued(self) -> int:
        return len(self._batch)

    def request(self, ids: Iterable[K]) -> None:
        """Add ids to the accumulating batch; must run inside the event loop."""

        if self._closed:
            raise StatusCacheClosedError("Status coordinator is closed")
        added = False
        for entity_id in ids:
            self._batch.setdefault(entity_id, None)
            added = True
        if not added:
            return
        self._restart_timer()

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def aclose(self) -> None:
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        active, self._active = self._active, None
        if active is not None and not active.done():
            active.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await active
        self._batch.clear()
        self._pending.clear()
        self._flush_after_active = False
        self._idle.set()

    def _restart_timer(self) -> None:
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._idle.clear()
        self._timer = loop.call_later(self._debounce, self._on_window_closed)

    def _on_window_closed(self) -> None:
        self._timer = None
        if self._active is not None and not self._active.done():
            self._flush_after_active = True
            return
        self._start_batch()

    def _start_batch(self) -> None:
        batch = list(self._batch)
        self._batch.clear()
        task = asyncio.get_running_loop().create_task(
            self._run_batch(batch), name="kyc-status-batch"
        )
        self._active = task
        task.add_done_callback(self._on_batch_done)

    def _on_batch_done(self, task: asyncio.Task[None]) -> None:
        if self._active is task:
            self._active = None
        if not task.cancelled() and (exc := task.exception()) is not None:
            log.error("KYC status batch crashed", exc_info=exc)
        if self._closed:
            return
        if self._flush_after_active:
            self._flush_after_active = False
            if self._timer is None and self._batch:
                self._start_batch()
                return
        if self._timer is None and self._active is None:
            self._idle.set()

    async def _run_batch(self, batch: list[K]) -> None:
        work = [
            entity_id
            for entity_id in batch
            if self._cache.get(entity_id) is None and not self._pending.is_pending(entity_id)
        ]
        if not work:
            log.debug("All %d requested statuses are cached or in flight", len(batch))
            return

        log.debug("Fetching %d of %d requested KYC statuses", len(work), len(batch))
        for entity_id in work:
            await self._pace()
            await self._resolve(entity_id)
        log.debug("KYC status batch of %d finished", len(work))

    async def _pace(self) -> None:
        if not self._delay or self._last_fetch_done is None:
            return
        elapsed = asyncio.get_running_loop().time() - self._last_fetch_done
        if elapsed < self._delay:
            await asyncio.sleep(self._delay - elapsed)

    async def _resolve(self, entity_id: K) -> None:
        self._pending.mark_pending(entity_id)
        try:
            status = await self._fetch_status(entity_id)
            self._cache.put(entity_id, status)
        finally:
            self._pending.clear_pending(entity_id)
            self._last_fetch_done = asyncio.get_running_loop().time()
        self._broadcaster.publish(self._cache.snapshot())

    async def _fetch_status(self, entity_id: K) -> StatusInfo:
        try:
            async with asyncio.timeout(self._fetch_timeout):
                record = await self._fetcher.fetch_record(entity_id)
        except Exception as exc:  # noqa: BLE001
            message = self._describe_failure(exc)
            log.warning("Could not fetch KYC record for %r: %s", entity_id, message)
            return NotVerified(total_count=self._schema.total_document_slots, error=message)
        return self._classify(record)

    def _describe_failure(self, exc: Exception) -> str:
        if isinstance(exc, TimeoutError) and not str(exc):
            if self._fetch_timeout is not None:
                return f"Timed out after {self._fetch_timeout:g}s"
            return "Timed out"
        return str(exc) or type(exc).__name__
