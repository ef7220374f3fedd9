"""Turn raw KYC records into display statuses.

The order of the checks in :func:`classify` is part of the contract:

1. no record, or a record without any verification fields: not verified;
2. a manual unverification marker wins over everything else, including a
   snapshot where both required documents still read as verified;
3. both required documents verified: fully verified;
4. any verified document at all: partially verified;
5. otherwise: not verified.

``classify`` never raises. A record that cannot be read becomes an
:class:`~kycstatus.domain.status.ErrorStatus`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from .status import (
    DEFAULT_VERIFICATION_METHOD,
    ErrorStatus,
    FullyVerified,
    ManuallyUnverified,
    NotVerified,
    PartiallyVerified,
)

if TYPE_CHECKING:
    from kycstatus.domain.ports.fetching import RawRecord

    from .status import StatusInfo

log = getLogger(__name__)

DEFAULT_DOCUMENT_FLAGS = (
    "panVerified",
    "aadhaarVerified",
    "drivingLicenseVerified",
    "voterIdVerified",
    "passportVerified",
)

_FALSE_STRINGS = frozenset({"false", "0", "no", "n", ""})


class ClassificationError(ValueError):
    """Raised while reading a malformed raw record."""


@dataclass(frozen=True, slots=True)
class DocumentSchema:
    """Field layout of a raw KYC record."""

    document_flags: tuple[str, ...] = DEFAULT_DOCUMENT_FLAGS
    required_flags: tuple[str, str] = ("panVerified", "aadhaarVerified")
    total_document_slots: int = len(DEFAULT_DOCUMENT_FLAGS)
    manual_unverification_field: str = "manualUnverificationDate"
    last_verified_field: str = "lastVerifiedOn"
    method_field: str = "verificationMethodDescription"


DEFAULT_DOCUMENT_SCHEMA = DocumentSchema()


def classify(
    record: RawRecord | None,
    schema: DocumentSchema = DEFAULT_DOCUMENT_SCHEMA,
) -> StatusInfo:
    try:
        return _classify(record, schema)
    except Exception as exc:  # noqa: BLE001
        log.debug("Unclassifiable KYC record: %s", exc)
        return ErrorStatus(message=str(exc) or type(exc).__name__)


def _classify(record: object, schema: DocumentSchema) -> StatusInfo:
    total = schema.total_document_slots
    if record is None:
        return NotVerified(total_count=total)
    if not isinstance(record, Mapping):
        raise ClassificationError(f"Expected a KYC record mapping, got {type(record).__name__}")

    marker = record.get(schema.manual_unverification_field)
    if marker is None and not any(name in record for name in schema.document_flags):
        return NotVerified(total_count=total)

    flags = {name: read_flag(record.get(name), name) for name in schema.document_flags}
    verified_count = sum(flags.values())
    first, second = schema.required_flags
    both_required = flags.get(first, False) and flags.get(second, False)

    if marker is not None:
        return ManuallyUnverified(verified_count=verified_count, total_count=total)

    if both_required:
        return FullyVerified(
            verified_count=verified_count,
            total_count=total,
            last_verified_on=parse_verification_date(record.get(schema.last_verified_field)),
            method=_verification_method(record.get(schema.method_field)),
        )

    if verified_count > 0:
        return PartiallyVerified(
            verified_count=verified_count,
            total_count=total,
            last_verified_on=parse_verification_date(record.get(schema.last_verified_field)),
            method=_verification_method(record.get(schema.method_field)),
        )

    return NotVerified(total_count=total)


def read_flag(value: object, name: str = "flag") -> bool:
    """Interpret a verification flag by truthiness.

    Explicit false spellings such as ``"false"`` or ``"no"`` read as unverified;
    any other non-empty string or non-zero number counts as verified. Containers
    and other objects are not flags and raise ``ClassificationError``.
    """

    if value is None:
        return False
    if isinstance(value, (bool, int, float)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    raise ClassificationError(f"{name} is not a boolean: {value!r}")


def parse_verification_date(value: object) -> date | None:
    """Parse Fineract's ``[year, month, day]`` arrays and ISO strings."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (list, tuple)):
        if len(value) < 3:
            raise ClassificationError(f"Date array needs year, month and day: {value!r}")
        year, month, day = value[:3]
        try:
            return date(int(year), int(month), int(day))
        except (TypeError, ValueError) as exc:
            raise ClassificationError(f"Invalid date array {value!r}: {exc}") from exc
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError as exc:
            raise ClassificationError(f"Invalid verification date {value!r}") from exc
    raise ClassificationError(f"Unsupported verification date {value!r}")


def _verification_method(value: object) -> str:
    if value is None:
        return DEFAULT_VERIFICATION_METHOD
    text = str(value).strip()
    return text or DEFAULT_VERIFICATION_METHOD


__all__ = [
    "DEFAULT_DOCUMENT_FLAGS",
    "DEFAULT_DOCUMENT_SCHEMA",
    "ClassificationError",
    "DocumentSchema",
    "classify",
    "parse_verification_date",
    "read_flag",
]
