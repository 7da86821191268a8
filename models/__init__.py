"""
Data models for Quote Desk.

This module contains dataclasses for:
- ProductRecord / ProductSnapshot: Cached catalog state
- Quote / QuoteLine / QuoteStatus: Quote workflow records
- UpstreamQuoteRef: Reference returned by the distributor
- AccessToken / Identity: Upstream bearer token and session caller

Product and credential models are frozen so they can be shared between
the refresh thread and request threads without locks.
"""

from .product import ProductRecord, ProductSnapshot
from .quote import Quote, QuoteLine, QuoteStatus, UpstreamQuoteRef
from .session import AccessToken, Identity

__all__ = [
    # Catalog models
    "ProductRecord",
    "ProductSnapshot",
    # Quote models
    "Quote",
    "QuoteLine",
    "QuoteStatus",
    "UpstreamQuoteRef",
    # Credential models
    "AccessToken",
    "Identity",
]
