"""Fineract connection values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import optional_float_env, optional_int_env, require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_TENANT_ID = "default"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_CALLS_PER_SECOND = 10
TENANT_HEADER = "Fineract-Platform-TenantId"

_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class FineractConfig:
    username: str
    password: str
    resilience: ResilienceConfig

    @property
    def auth(self) -> tuple[str, str]:
        return (self.username, self.password)


def get_fineract_config() -> FineractConfig:
    values = require_env_vars(("FINERACT_BASE_URL", "FINERACT_USERNAME", "FINERACT_PASSWORD"))
    base_url = values["FINERACT_BASE_URL"].strip().rstrip("/")
    if not base_url.startswith(("http://", "https://")):
        raise ConfigurationError(f"FINERACT_BASE_URL must be an http(s) URL, got {base_url!r}")

    tenant_id = (os.getenv("FINERACT_TENANT_ID") or "").strip() or DEFAULT_TENANT_ID
    timeout = optional_float_env("FINERACT_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
    calls_per_second = optional_int_env(
        "FINERACT_MAX_CALLS_PER_SECOND", DEFAULT_MAX_CALLS_PER_SECOND
    )
    if timeout is None or timeout <= 0:
        raise ConfigurationError(f"FINERACT_TIMEOUT_SECONDS must be positive, got {timeout}")
    if calls_per_second is None or calls_per_second <= 0:
        raise ConfigurationError(
            f"FINERACT_MAX_CALLS_PER_SECOND must be positive, got {calls_per_second}"
        )
    verify_tls = os.getenv("FINERACT_VERIFY_TLS", "true").strip().lower() not in _FALSE_VALUES

    resilience = ResilienceConfig(
        name="fineract",
        base_url=base_url,
        timeout_seconds=timeout,
        retry=RetryPolicy(total=3),
        ratelimit=RateLimit(max_calls=calls_per_second, per_seconds=1.0),
        default_headers={TENANT_HEADER: tenant_id, "Accept": "application/json"},
        verify_tls=verify_tls,
    )
    return FineractConfig(
        username=values["FINERACT_USERNAME"],
        password=values["FINERACT_PASSWORD"],
        resilience=resilience,
    )
