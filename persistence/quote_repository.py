"""
SQLAlchemy-backed quote store.

Works against any SQLAlchemy URL; production points DATABASE_URL at
PostgreSQL, tests use in-memory SQLite. Rows are converted to Quote
dataclasses before leaving a session so callers never hold ORM objects.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.exceptions import PersistenceError
from logging_config import get_logger
from models.quote import Quote, QuoteLine, QuoteStatus
from .tables import Base, QuoteRow


# Module logger
logger = get_logger(__name__)


def _normalize_connection_string(s: str) -> str:
    """Strip common mistakes: 'psql \'...\'', extra quotes, whitespace."""
    s = s.strip()
    if re.match(r"^psql\s+", s, re.IGNORECASE):
        s = re.sub(r"^psql\s+", "", s, flags=re.IGNORECASE).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s


def build_engine(database_url: str) -> Engine:
    """Create an engine suited to the URL (shared-connection SQLite or pooled server DB)."""
    url = _normalize_connection_string(database_url)
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One connection so every thread sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


def _to_quote(row: QuoteRow) -> Quote:
    return Quote(
        id=row.id,
        upstream_quote_number=row.upstream_quote_number,
        user_id=row.user_id,
        products=[QuoteLine.from_dict(p) for p in (row.products or [])],
        shipping_info=row.shipping_info,
        tax_info=row.tax_info,
        status=QuoteStatus(row.status),
        final_price=row.final_price,
        created_at=row.created_at,
    )


class QuoteRepository:
    """
    Data access for the quotes table.

    Every public method runs in its own transaction and raises
    PersistenceError when the database fails.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False
        )

    @classmethod
    def from_url(cls, database_url: str) -> "QuoteRepository":
        return cls(build_engine(database_url))

    def create_tables(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError("create_tables", str(e)) from e

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except SQLAlchemyError as e:
            s.rollback()
            logger.error(f"Quote store {operation} failed: {e}")
            raise PersistenceError(operation, f"Quote store {operation} failed") from e
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ------------------------------------------------------------------ #
    # Quotes
    # ------------------------------------------------------------------ #
    def add(self, quote: Quote) -> Quote:
        """Insert a new quote and return it with its generated id."""
        with self._session("insert") as s:
            row = QuoteRow(
                upstream_quote_number=quote.upstream_quote_number,
                user_id=quote.user_id,
                products=[line.to_dict() for line in quote.products],
                shipping_info=quote.shipping_info,
                tax_info=quote.tax_info,
                status=quote.status.value,
                final_price=quote.final_price,
                created_at=quote.created_at,
            )
            s.add(row)
            s.flush()
            s.refresh(row)
            return _to_quote(row)

    def get(self, quote_id: int) -> Optional[Quote]:
        with self._session("read") as s:
            row = s.execute(select(QuoteRow).where(QuoteRow.id == quote_id)).scalar_one_or_none()
            return _to_quote(row) if row else None

    def update_status(
        self,
        quote_id: int,
        status: QuoteStatus,
        final_price: Any,
        shipping_info: Any,
        tax_info: Any,
    ) -> Optional[Quote]:
        """
        Overwrite status, final price and shipping/tax info in one transaction.

        Returns:
            The updated quote, or None if no row has that id
        """
        with self._session("update") as s:
            row = s.execute(select(QuoteRow).where(QuoteRow.id == quote_id)).scalar_one_or_none()
            if row is None:
                return None
            row.status = status.value
            row.final_price = final_price
            row.shipping_info = shipping_info
            row.tax_info = tax_info
            s.flush()
            s.refresh(row)
            return _to_quote(row)
