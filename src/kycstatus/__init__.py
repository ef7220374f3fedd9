"""Batched, cached KYC verification status lookups for Fineract clients."""

from __future__ import annotations

__version__ = "0.1.0"
