"""Tuning values for the KYC status cache."""

from __future__ import annotations

from dataclasses import dataclass

from kycstatus.domain.classification import DEFAULT_DOCUMENT_FLAGS, DocumentSchema

from .env import optional_float_env, optional_int_env, optional_list_env
from .errors import ConfigurationError

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_DEBOUNCE_SECONDS = 0.5
DEFAULT_INTER_REQUEST_DELAY_SECONDS = 0.1
DEFAULT_REQUIRED_FLAGS = ("panVerified", "aadhaarVerified")
DEFAULT_TOTAL_DOCUMENT_SLOTS = 5
DEFAULT_MAX_ENTRIES = 10_000


@dataclass(frozen=True, slots=True)
class StatusCacheConfig:
    """Timing, sizing and document-schema settings for the status cache.

    Invalid values raise ``ConfigurationError`` on construction so that a bad
    deployment fails at startup instead of on the first table render.
    """

    ttl_seconds: float = DEFAULT_TTL_SECONDS
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    inter_request_delay_seconds: float = DEFAULT_INTER_REQUEST_DELAY_SECONDS
    required_flag_names: tuple[str, ...] = DEFAULT_REQUIRED_FLAGS
    total_document_slots: int = DEFAULT_TOTAL_DOCUMENT_SLOTS
    document_flag_names: tuple[str, ...] = DEFAULT_DOCUMENT_FLAGS
    max_entries: int | None = DEFAULT_MAX_ENTRIES
    fetch_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.ttl_seconds <= 0:
            raise ConfigurationError(f"ttl_seconds must be positive, got {self.ttl_seconds}")
        if self.debounce_seconds < 0:
            raise ConfigurationError(
                f"debounce_seconds must be non-negative, got {self.debounce_seconds}"
            )
        if self.inter_request_delay_seconds < 0:
            raise ConfigurationError(
                "inter_request_delay_seconds must be non-negative, "
                f"got {self.inter_request_delay_seconds}"
            )
        if self.fetch_timeout_seconds is not None and self.fetch_timeout_seconds <= 0:
            raise ConfigurationError(
                f"fetch_timeout_seconds must be positive, got {self.fetch_timeout_seconds}"
            )
        if self.max_entries is not None and self.max_entries < 1:
            raise ConfigurationError(f"max_entries must be at least 1, got {self.max_entries}")

        if not self.document_flag_names:
            raise ConfigurationError("document_flag_names must not be empty")
        if len(set(self.document_flag_names)) != len(self.document_flag_names):
            raise ConfigurationError("document_flag_names must be unique")
        if len(self.required_flag_names) != 2 or len(set(self.required_flag_names)) != 2:
            raise ConfigurationError(
                "required_flag_names must name exactly two distinct flags, "
                f"got {self.required_flag_names}"
            )
        unknown = [
            name for name in self.required_flag_names if name not in self.document_flag_names
        ]
        if unknown:
            raise ConfigurationError(f"Required flags are not document flags: {', '.join(unknown)}")
        if self.total_document_slots < len(self.document_flag_names):
            raise ConfigurationError(
                f"total_document_slots ({self.total_document_slots}) is smaller than the "
                f"number of document flags ({len(self.document_flag_names)})"
            )

    def document_schema(self) -> DocumentSchema:
        first, second = self.required_flag_names
        return DocumentSchema(
            document_flags=self.document_flag_names,
            required_flags=(first, second),
            total_document_slots=self.total_document_slots,
        )

    @classmethod
    def from_environment(cls) -> StatusCacheConfig:
        ttl = optional_float_env("KYC_STATUS_TTL_SECONDS", DEFAULT_TTL_SECONDS)
        debounce = optional_float_env("KYC_STATUS_DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS)
        delay = optional_float_env(
            "KYC_STATUS_INTER_REQUEST_DELAY_SECONDS", DEFAULT_INTER_REQUEST_DELAY_SECONDS
        )
        slots = optional_int_env("KYC_STATUS_TOTAL_DOCUMENT_SLOTS", DEFAULT_TOTAL_DOCUMENT_SLOTS)
        return cls(
            ttl_seconds=DEFAULT_TTL_SECONDS if ttl is None else ttl,
            debounce_seconds=DEFAULT_DEBOUNCE_SECONDS if debounce is None else debounce,
            inter_request_delay_seconds=(
                DEFAULT_INTER_REQUEST_DELAY_SECONDS if delay is None else delay
            ),
            required_flag_names=optional_list_env(
                "KYC_STATUS_REQUIRED_FLAGS", DEFAULT_REQUIRED_FLAGS
            ),
            total_document_slots=DEFAULT_TOTAL_DOCUMENT_SLOTS if slots is None else slots,
            document_flag_names=optional_list_env(
                "KYC_STATUS_DOCUMENT_FLAGS", DEFAULT_DOCUMENT_FLAGS
            ),
            max_entries=optional_int_env("KYC_STATUS_MAX_ENTRIES", DEFAULT_MAX_ENTRIES),
            fetch_timeout_seconds=optional_float_env("KYC_STATUS_FETCH_TIMEOUT_SECONDS", None),
        )
