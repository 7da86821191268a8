"""
Tests for the SQLAlchemy quote store against in-memory SQLite.
"""

import pytest

from core.exceptions import PersistenceError
from models.quote import Quote, QuoteLine, QuoteStatus
from persistence.quote_repository import QuoteRepository, _normalize_connection_string


def make_quote(**overrides):
    values = dict(
        upstream_quote_number="QUO-1",
        user_id=1,
        products=[QuoteLine("B2", 1), QuoteLine("A1", 3)],
    )
    values.update(overrides)
    return Quote(**values)


class TestAddAndGet:

    def test_add_assigns_id(self, repository):
        stored = repository.add(make_quote())

        assert stored.id is not None
        assert stored.status == QuoteStatus.PENDING_APPROVAL
        assert stored.final_price is None

    def test_ids_are_unique(self, repository):
        first = repository.add(make_quote())
        second = repository.add(make_quote(upstream_quote_number="QUO-2"))

        assert first.id != second.id

    def test_get_round_trips_fields(self, repository):
        stored = repository.add(make_quote(shipping_info={"method": "ground"}, tax_info="Exempt"))

        loaded = repository.get(stored.id)

        assert loaded.upstream_quote_number == "QUO-1"
        assert loaded.user_id == 1
        assert loaded.shipping_info == {"method": "ground"}
        assert loaded.tax_info == "Exempt"
        assert loaded.status == QuoteStatus.PENDING_APPROVAL

    def test_product_order_preserved(self, repository):
        stored = repository.add(make_quote())

        loaded = repository.get(stored.id)

        assert loaded.products == [QuoteLine("B2", 1), QuoteLine("A1", 3)]

    def test_get_missing_returns_none(self, repository):
        assert repository.get(999) is None


class TestUpdateStatus:

    def test_update_overwrites_fields(self, repository):
        stored = repository.add(make_quote(shipping_info="Express", tax_info="Included"))

        updated = repository.update_status(
            stored.id, QuoteStatus.APPROVED,
            final_price=1234.5, shipping_info="Pending", tax_info="Pending",
        )

        assert updated.status == QuoteStatus.APPROVED
        assert updated.final_price == 1234.5
        assert updated.shipping_info == "Pending"
        assert repository.get(stored.id).is_approved

    def test_update_missing_returns_none(self, repository):
        result = repository.update_status(
            42, QuoteStatus.APPROVED, final_price="TBD", shipping_info="Pending", tax_info="Pending"
        )

        assert result is None


class TestFailures:

    def test_missing_table_raises_persistence_error(self):
        repo = QuoteRepository.from_url("sqlite://")
        try:
            with pytest.raises(PersistenceError) as exc_info:
                repo.add(make_quote())
        finally:
            repo.dispose()

        assert exc_info.value.operation == "insert"

    def test_create_tables_is_idempotent(self, repository):
        repository.create_tables()
        assert repository.get(1) is None


class TestConnectionString:

    def test_strips_psql_prefix_and_quotes(self):
        raw = "  psql 'postgresql://user:pw@db/quotes'  "
        assert _normalize_connection_string(raw) == "postgresql://user:pw@db/quotes"

    def test_plain_url_untouched(self):
        assert _normalize_connection_string("sqlite://") == "sqlite://"
