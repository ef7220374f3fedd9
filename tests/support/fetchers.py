"""Scripted RecordFetcher doubles."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kycstatus.domain.ports.fetching import RawRecord

type Outcome = RawRecord | None | Exception


@dataclass
class FakeRecordFetcher:
    """Returns (or raises) the scripted outcome per id and records timing."""

    outcomes: dict[int, Outcome] = field(default_factory=dict)
    latency: float = 0.0
    calls: list[int] = field(default_factory=list)
    started_at: list[float] = field(default_factory=list)
    finished_at: list[float] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    async def fetch_record(self, entity_id: int) -> RawRecord | None:
        loop = asyncio.get_running_loop()
        self.calls.append(entity_id)
        self.started_at.append(loop.time())
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            outcome = self.outcomes.get(entity_id)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1
            self.finished_at.append(loop.time())


async def wait_for_calls(fetcher: FakeRecordFetcher, count: int, *, timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while len(fetcher.calls) < count:
            await asyncio.sleep(0.001)
