"""Classified, display-facing KYC verification statuses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from datetime import date

DEFAULT_VERIFICATION_METHOD = "API Verification"
MANUAL_UNVERIFICATION_METHOD = "Manual Unverification"


class StatusKind(StrEnum):
    FULLY_VERIFIED = "fully-verified"
    PARTIALLY_VERIFIED = "partially-verified"
    NOT_VERIFIED = "not-verified"
    MANUALLY_UNVERIFIED = "manually-unverified"
    ERROR = "error"


def _check_counts(verified_count: int, total_count: int) -> None:
    if total_count < 0:
        raise ValueError(f"total_count must be non-negative, got {total_count}")
    if not 0 <= verified_count <= total_count:
        raise ValueError(
            f"verified_count must be between 0 and {total_count}, got {verified_count}"
        )


@dataclass(frozen=True, slots=True)
class FullyVerified:
    """Both required documents are verified."""

    kind: ClassVar[StatusKind] = StatusKind.FULLY_VERIFIED

    verified_count: int
    total_count: int
    last_verified_on: date | None = None
    method: str = DEFAULT_VERIFICATION_METHOD

    def __post_init__(self) -> None:
        _check_counts(self.verified_count, self.total_count)


@dataclass(frozen=True, slots=True)
class PartiallyVerified:
    """At least one document is verified, but not the full required pair."""

    kind: ClassVar[StatusKind] = StatusKind.PARTIALLY_VERIFIED

    verified_count: int
    total_count: int
    last_verified_on: date | None = None
    method: str = DEFAULT_VERIFICATION_METHOD

    def __post_init__(self) -> None:
        _check_counts(self.verified_count, self.total_count)


@dataclass(frozen=True, slots=True)
class NotVerified:
    """Nothing verified, or the record could not be fetched.

    ``error`` keeps the failure context when this status was synthesised after a
    failed fetch rather than derived from a record.
    """

    kind: ClassVar[StatusKind] = StatusKind.NOT_VERIFIED

    total_count: int
    error: str | None = None

    def __post_init__(self) -> None:
        _check_counts(0, self.total_count)

    @property
    def verified_count(self) -> int:
        return 0


@dataclass(frozen=True, slots=True)
class ManuallyUnverified:
    """An administrator explicitly revoked the verification."""

    kind: ClassVar[StatusKind] = StatusKind.MANUALLY_UNVERIFIED

    verified_count: int
    total_count: int
    method: str = MANUAL_UNVERIFICATION_METHOD

    def __post_init__(self) -> None:
        _check_counts(self.verified_count, self.total_count)


@dataclass(frozen=True, slots=True)
class ErrorStatus:
    """The raw record was malformed and could not be classified."""

    kind: ClassVar[StatusKind] = StatusKind.ERROR

    message: str


StatusInfo = FullyVerified | PartiallyVerified | NotVerified | ManuallyUnverified | ErrorStatus


def is_fully_verified(status: StatusInfo | None) -> bool:
    return isinstance(status, FullyVerified)


__all__ = [
    "DEFAULT_VERIFICATION_METHOD",
    "MANUAL_UNVERIFICATION_METHOD",
    "ErrorStatus",
    "FullyVerified",
    "ManuallyUnverified",
    "NotVerified",
    "PartiallyVerified",
    "StatusInfo",
    "StatusKind",
    "is_fully_verified",
]
