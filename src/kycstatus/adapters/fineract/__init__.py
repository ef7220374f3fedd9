"""Public interface for the Fineract adapter."""

from __future__ import annotations

from .client import KYC_DETAILS_PATH, FineractAPIError, FineractKycFetcher
from .schema import FineractErrorDetail, FineractErrorResponse

__all__ = [
    "KYC_DETAILS_PATH",
    "FineractAPIError",
    "FineractErrorDetail",
    "FineractErrorResponse",
    "FineractKycFetcher",
]
