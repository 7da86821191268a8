"""
Shared fixtures for the Quote Desk test suite.
"""

from unittest.mock import MagicMock

import pytest

from models.product import ProductRecord
from models.session import AccessToken, Identity
from persistence.quote_repository import QuoteRepository


class FakeClock:
    """Manually advanced clock, injected wherever code reads the time."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(status_code=200, json_body=None, json_error=None):
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_body
    return response


def make_products(count, brand="Dell", prefix="SKU"):
    return [
        ProductRecord(sku=f"{prefix}{i}", part_number=f"PN-{i}", name=f"Item {i}",
                      brand=brand, price=10.0 + i, stock=i)
        for i in range(count)
    ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def identity():
    return Identity(user_id=1, expires_at=9_999_999_999.0)


@pytest.fixture
def token_cache():
    """Token cache stand-in that always hands out the same bearer token."""
    cache = MagicMock()
    cache.get_token.return_value = AccessToken(value="bearer-abc", expires_at=9_999_999_999.0)
    return cache


@pytest.fixture
def repository():
    """Quote store on a private in-memory SQLite database."""
    repo = QuoteRepository.from_url("sqlite://")
    repo.create_tables()
    yield repo
    repo.dispose()
