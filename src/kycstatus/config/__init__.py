"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_float_env, optional_int_env, optional_list_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .fineract import FineractConfig, get_fineract_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .status_cache import StatusCacheConfig

__all__ = [
    "ConfigurationError",
    "FineractConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StatusCacheConfig",
    "configure_logging",
    "get_fineract_config",
    "optional_float_env",
    "optional_int_env",
    "optional_list_env",
    "require_env_vars",
]
