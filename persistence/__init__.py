"""
Persistence layer for Quote Desk: the SQLAlchemy quote store.
"""

from .tables import Base, QuoteRow
from .quote_repository import QuoteRepository, build_engine

__all__ = [
    "Base",
    "QuoteRow",
    "QuoteRepository",
    "build_engine",
]
