"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import contextlib
import time
from logging import getLogger
from typing import TYPE_CHECKING

from kycstatus.adapters.fineract import FineractKycFetcher
from kycstatus.config.status_cache import StatusCacheConfig
from kycstatus.domain.status_cache import StatusQueryFacade

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable

    from kycstatus.domain.ports.fetching import RecordFetcher
    from kycstatus.domain.status import StatusInfo

log = getLogger(__name__)


def build_status_service[K: Hashable](
    fetcher: RecordFetcher[K],
    config: StatusCacheConfig | None = None,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> StatusQueryFacade[K]:
    """Wire a status service around ``fetcher`` using ``config`` (defaults otherwise)."""

    settings = config or StatusCacheConfig()
    return StatusQueryFacade.create(
        fetcher,
        schema=settings.document_schema(),
        ttl_seconds=settings.ttl_seconds,
        max_entries=settings.max_entries,
        debounce_seconds=settings.debounce_seconds,
        inter_request_delay_seconds=settings.inter_request_delay_seconds,
        fetch_timeout_seconds=settings.fetch_timeout_seconds,
        clock=clock,
    )


async def lookup_statuses(
    client_ids: Iterable[int],
    *,
    config: StatusCacheConfig | None = None,
    fetcher: RecordFetcher[int] | None = None,
) -> dict[int, StatusInfo]:
    """Resolve the KYC status of every client through one batch."""

    ids = tuple(dict.fromkeys(client_ids))
    settings = config or StatusCacheConfig.from_environment()

    fetcher_context = FineractKycFetcher() if fetcher is None else contextlib.nullcontext(fetcher)
    async with fetcher_context as active:
        async with build_status_service(active, settings) as service:
            statuses = await service.request_many(ids).resolved()

    log.info("Resolved %d of %d KYC statuses", len(statuses), len(ids))
    return statuses


def lookup_kyc_statuses(
    client_ids: Iterable[int],
    *,
    config: StatusCacheConfig | None = None,
    fetcher: RecordFetcher[int] | None = None,
) -> dict[int, StatusInfo]:
    return asyncio.run(lookup_statuses(client_ids, config=config, fetcher=fetcher))

