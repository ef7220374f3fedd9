from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from kycstatus.domain.status import (
    FullyVerified,
    NotVerified,
    PartiallyVerified,
    StatusInfo,
)
from kycstatus.domain.status_cache import StatusCacheClosedError, StatusQueryFacade
from tests.support.clock import FakeClock
from tests.support.fetchers import FakeRecordFetcher, wait_for_calls
from tests.support.records import kyc_record

if TYPE_CHECKING:
    from kycstatus.domain.ports import RawRecord

FULL = kyc_record(pan=True, aadhaar=True, last_verified_on=[2024, 5, 17])
PARTIAL = kyc_record(pan=True)


def _service(
    fetcher: FakeRecordFetcher,
    **kwargs: object,
) -> StatusQueryFacade[int]:
    options: dict[str, object] = {"debounce_seconds": 0.03, "inter_request_delay_seconds": 0.01}
    options.update(kwargs)
    return StatusQueryFacade.create(fetcher, **options)  # type: ignore[arg-type]


def test_request_many_resolves_every_id() -> None:
    fetcher = FakeRecordFetcher(outcomes={1: FULL, 2: PARTIAL})

    async def scenario() -> dict[int, StatusInfo]:
        async with _service(fetcher) as service:
            return await service.request_many([1, 2, 3]).resolved()

    statuses = asyncio.run(scenario())

    assert list(statuses) == [1, 2, 3]
    assert isinstance(statuses[1], FullyVerified)
    assert statuses[2] == PartiallyVerified(verified_count=1, total_count=5)
    assert statuses[3] == NotVerified(total_count=5)


def test_request_many_deduplicates_ids() -> None:
    fetcher = FakeRecordFetcher()

    async def scenario() -> tuple[int, ...]:
        async with _service(fetcher) as service:
            stream = service.request_many([5, 5, 5, 7])
            await stream.resolved()
            return stream.ids

    assert asyncio.run(scenario()) == (5, 7)
    assert fetcher.calls == [5, 7]


def test_stream_emits_cached_subset_first_then_increments() -> None:
    fetcher = FakeRecordFetcher(outcomes={1: FULL, 2: PARTIAL})

    async def scenario() -> list[list[int]]:
        async with _service(fetcher) as service:
            await service.request_one(1)
            emissions: list[list[int]] = []
            with service.request_many([1, 2, 3]) as stream:
                async for statuses in stream:
                    emissions.append(list(statuses))
                    if len(statuses) == 3:
                        break
            return emissions

    assert asyncio.run(scenario()) == [[1], [1, 2], [1, 2, 3]]
    assert fetcher.calls == [1, 2, 3]


def test_resolved_keeps_ids_evicted_by_size_bound() -> None:
    fetcher = FakeRecordFetcher(outcomes={1: FULL, 2: PARTIAL})

    async def scenario() -> dict[int, StatusInfo]:
        async with _service(fetcher, max_entries=2) as service:
            return await asyncio.wait_for(service.request_many([1, 2, 3]).resolved(), 2.0)

    statuses = asyncio.run(scenario())

    assert list(statuses) == [1, 2, 3]
    assert isinstance(statuses[1], FullyVerified)
    assert fetcher.calls == [1, 2, 3]


class _AgingFetcher(FakeRecordFetcher):
    def __init__(self, clock: FakeClock, step: float) -> None:
        super().__init__()
        self._clock = clock
        self._step = step

    async def fetch_record(self, entity_id: int) -> RawRecord | None:
        self._clock.advance(self._step)
        return await super().fetch_record(entity_id)


def test_resolved_keeps_ids_that_expire_during_the_batch() -> None:
    clock = FakeClock()
    fetcher = _AgingFetcher(clock, step=11.0)

    async def scenario() -> dict[int, StatusInfo]:
        async with _service(fetcher, clock=clock, ttl_seconds=10.0) as service:
            return await asyncio.wait_for(service.request_many([1, 2, 3]).resolved(), 2.0)

    statuses = asyncio.run(scenario())

    assert list(statuses) == [1, 2, 3]
    assert fetcher.calls == [1, 2, 3]


def test_resolved_returns_once_coordinator_is_idle() -> None:
    fetcher = FakeRecordFetcher()

    async def scenario() -> dict[int, StatusInfo]:
        async with _service(fetcher) as service:
            stream = service.request_many([1, 2])
            await service.coordinator.wait_idle()
            service.invalidate(1)
            return await asyncio.wait_for(stream.resolved(), 2.0)

    assert asyncio.run(scenario()) == {
        1: NotVerified(total_count=5),
        2: NotVerified(total_count=5),
    }


def test_request_one_returns_fresh_entry_without_fetching() -> None:
    fetcher = FakeRecordFetcher(outcomes={4: FULL})

    async def scenario() -> tuple[StatusInfo, StatusInfo]:
        async with _service(fetcher) as service:
            first = await service.request_one(4)
            second = await service.request_one(4)
            return first, second

    first, second = asyncio.run(scenario())

    assert first is second
    assert fetcher.calls == [4]


def test_request_one_joins_fetch_already_in_flight() -> None:
    fetcher = FakeRecordFetcher(outcomes={4: PARTIAL}, latency=0.05)

    async def scenario() -> tuple[StatusInfo, dict[int, StatusInfo]]:
        async with _service(fetcher) as service:
            stream = service.request_many([4])
            await wait_for_calls(fetcher, 1)
            single = await service.request_one(4)
            return single, await stream.resolved()

    single, statuses = asyncio.run(scenario())

    assert single == statuses[4] == PartiallyVerified(verified_count=1, total_count=5)
    assert fetcher.calls == [4]


def test_invalidate_forces_refetch() -> None:
    fetcher = FakeRecordFetcher(outcomes={5: PARTIAL})

    async def scenario() -> None:
        async with _service(fetcher) as service:
            await service.request_many([5]).resolved()
            assert service.read_cached(5) is not None

            fetcher.outcomes[5] = FULL
            service.invalidate(5)

            assert service.read_cached(5) is None
            assert isinstance(await service.request_one(5), FullyVerified)

    asyncio.run(scenario())

    assert fetcher.calls == [5, 5]


def test_invalidate_all_clears_cache() -> None:
    fetcher = FakeRecordFetcher()

    async def scenario() -> None:
        async with _service(fetcher) as service:
            await service.request_many([1, 2]).resolved()
            service.invalidate_all()
            assert service.read_cached(1) is None
            assert service.read_cached(2) is None
            service.invalidate(3)

    asyncio.run(scenario())


def test_read_cached_never_fetches() -> None:
    fetcher = FakeRecordFetcher()

    async def scenario() -> StatusInfo | None:
        async with _service(fetcher) as service:
            status = service.read_cached(8)
            await asyncio.sleep(0.05)
            return status

    assert asyncio.run(scenario()) is None
    assert fetcher.calls == []


def test_read_cached_respects_ttl() -> None:
    fetcher = FakeRecordFetcher(outcomes={1: FULL})
    clock = FakeClock()

    async def scenario() -> None:
        async with _service(fetcher, clock=clock, ttl_seconds=60.0) as service:
            await service.request_one(1)
            clock.advance(59.0)
            assert service.read_cached(1) is not None
            clock.advance(1.0)
            assert service.read_cached(1) is None

    asyncio.run(scenario())


def test_is_verified_requires_full_verification() -> None:
    fetcher = FakeRecordFetcher(outcomes={1: FULL, 2: PARTIAL})

    async def scenario() -> tuple[bool, bool]:
        async with _service(fetcher) as service:
            return await service.is_verified(1), await service.is_verified(2)

    assert asyncio.run(scenario()) == (True, False)


def test_subscribe_to_updates_receives_full_snapshots() -> None:
    fetcher = FakeRecordFetcher()

    async def scenario() -> list[list[int]]:
        async with _service(fetcher) as service:
            subscription = service.subscribe_to_updates()
            await service.request_many([1, 2]).resolved()
            await service.request_many([3]).resolved()
        return [sorted(snapshot) async for snapshot in subscription]

    assert asyncio.run(scenario()) == [[1], [1, 2], [1, 2, 3]]


def test_failed_fetch_is_reported_as_not_verified() -> None:
    fetcher = FakeRecordFetcher(outcomes={2: ConnectionError("connection reset")})

    async def scenario() -> StatusInfo:
        async with _service(fetcher) as service:
            return await service.request_one(2)

    assert asyncio.run(scenario()) == NotVerified(total_count=5, error="connection reset")


def test_aclose_ends_streams_and_rejects_new_requests() -> None:
    fetcher = FakeRecordFetcher(latency=5.0)

    async def scenario() -> dict[int, StatusInfo]:
        service = _service(fetcher)
        stream = service.request_many([1, 2])
        waiter = asyncio.create_task(stream.resolved())
        await wait_for_calls(fetcher, 1)

        await service.aclose()
        await service.aclose()

        with pytest.raises(StatusCacheClosedError):
            service.request_many([3])
        with pytest.raises(StatusCacheClosedError):
            await service.request_one(3)
        return await waiter

    assert asyncio.run(scenario()) == {}
