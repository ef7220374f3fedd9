"""Fan-out of cache snapshots to listeners."""

from __future__ import annotations

import asyncio
from collections.abc import Hashable, Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from types import TracebackType

    from kycstatus.domain.status import StatusInfo

log = getLogger(__name__)

type Snapshot = Mapping[Hashable, StatusInfo]

_CLOSED = object()


class Subscription:
    """Async iterator over the snapshots published after it was created.

    Iteration ends once the subscription or its broadcaster is closed and every
    snapshot delivered before that has been consumed.
    """

    def __init__(self, broadcaster: UpdateBroadcaster) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broadcaster._discard(self)  # noqa: SLF001
        self._queue.put_nowait(_CLOSED)

    def _deliver(self, snapshot: Snapshot) -> None:
        if not self._closed:
            self._queue.put_nowait(snapshot)

    def drain(self) -> list[Snapshot]:
        """Take every snapshot already delivered without waiting for more."""

        snapshots: list[Snapshot] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _CLOSED:
                break
            snapshots.append(item)  # type: ignore[arg-type]
        return snapshots

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> Snapshot:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class UpdateBroadcaster:
    """Publishes every cache snapshot to all open subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: set[Subscription] = set()
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        if self._closed:
            subscription.close()
        else:
            self._subscriptions.add(subscription)
        return subscription

    def publish(self, snapshot: Snapshot) -> int:
        for subscription in tuple(self._subscriptions):
            subscription._deliver(snapshot)  # noqa: SLF001
        return len(self._subscriptions)

    def close(self) -> None:
        self._closed = True
        for subscription in tuple(self._subscriptions):
            subscription.close()
        log.debug("Status broadcaster closed")

    def _discard(self, subscription: Subscription) -> None:
        self._subscriptions.discard(subscription)
