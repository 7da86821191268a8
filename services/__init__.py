"""
Services layer for Quote Desk.

This module contains the business logic services:
- ProductCache: Catalog cache with background refresh thread
- QuoteWorkflow: Quote create/approve state machine

Thread Model:
    Request threads (Flask)
    └── ProductCache refresh thread (30-minute loop)

The refresh thread and request threads share only the current catalog
snapshot, which is replaced atomically.
"""

from .product_cache import ProductCache
from .quote_workflow import QuoteWorkflow, parse_quote_lines

__all__ = [
    "ProductCache",
    "QuoteWorkflow",
    "parse_quote_lines",
]
