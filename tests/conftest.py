from __future__ import annotations

import os

import pytest

from kycstatus.config import StatusCacheConfig

FAST_DEBOUNCE = 0.05
FAST_DELAY = 0.02


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in tuple(os.environ):
        if name.startswith(("KYC_STATUS_", "FINERACT_")):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fast_config() -> StatusCacheConfig:
    return StatusCacheConfig(
        debounce_seconds=FAST_DEBOUNCE,
        inter_request_delay_seconds=FAST_DELAY,
    )
