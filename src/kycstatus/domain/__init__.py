"""Domain layer: statuses, classification and the status cache."""

from __future__ import annotations

from .badges import Badge, describe_badge
from .classification import DEFAULT_DOCUMENT_SCHEMA, DocumentSchema, classify
from .status import (
    ErrorStatus,
    FullyVerified,
    ManuallyUnverified,
    NotVerified,
    PartiallyVerified,
    StatusInfo,
    StatusKind,
    is_fully_verified,
)

__all__ = [
    "DEFAULT_DOCUMENT_SCHEMA",
    "Badge",
    "DocumentSchema",
    "ErrorStatus",
    "FullyVerified",
    "ManuallyUnverified",
    "NotVerified",
    "PartiallyVerified",
    "StatusInfo",
    "StatusKind",
    "classify",
    "describe_badge",
    "is_fully_verified",
]
