"""
Unit tests for the distributor UpstreamClient.

HTTP is mocked by patching requests.post; the token cache is a MagicMock.
"""

from unittest.mock import patch

import pytest
import requests

from core.exceptions import UpstreamAuthError, UpstreamUnavailable
from core.upstream_client import UpstreamClient, make_correlation_id
from models.quote import QuoteLine
from tests.conftest import make_response


API_URL = "https://upstream.test/resellers/v6/"


@pytest.fixture
def client(token_cache):
    return UpstreamClient(API_URL, "20-222222", token_cache, country_code="US", timeout_seconds=7)


@pytest.fixture
def catalog_body():
    return {
        "serviceresponse": {
            "products": [
                {
                    "ingrampartnumber": "A1",
                    "vendorpartnumber": "LAT-5440",
                    "description": "Latitude 5440",
                    "vendorname": "Dell",
                    "unitprice": 999.0,
                    "quotePrice": 899.0,
                    "totalavailability": 12,
                },
                {
                    "ingrampartnumber": "B2",
                    "vendorpartnumber": "EB-840",
                    "description": "EliteBook 840",
                    "vendorname": "HP",
                    "unitprice": 1099.0,
                    "totalavailability": 3,
                    "category": "Laptop",
                },
            ]
        }
    }


class TestFetchCatalog:
    """Price and availability lookups."""

    def test_full_catalog_request(self, client, catalog_body):
        with patch("core.upstream_client.requests.post",
                   return_value=make_response(200, catalog_body)) as mock_post:
            client.fetch_catalog()

        args, kwargs = mock_post.call_args
        assert args[0] == "https://upstream.test/resellers/v6/catalog/priceandavailability"
        assert kwargs["json"] == {
            "requestpreamble": {"isocountrycode": "US", "customernumber": "20-222222"},
            "products": [],
        }
        headers = kwargs["headers"]
        assert headers["Authorization"] == "Bearer bearer-abc"
        assert headers["IM-CustomerNumber"] == "20-222222"
        assert headers["IM-CountryCode"] == "US"
        assert headers["IM-CorrelationID"].startswith("quotedesk-")
        assert kwargs["timeout"] == 7

    def test_single_sku_request(self, client, catalog_body):
        with patch("core.upstream_client.requests.post",
                   return_value=make_response(200, catalog_body)) as mock_post:
            client.fetch_catalog("A1")

        assert mock_post.call_args.kwargs["json"]["products"] == [{"ingrampartnumber": "A1"}]

    def test_response_mapping(self, client, catalog_body):
        with patch("core.upstream_client.requests.post",
                   return_value=make_response(200, catalog_body)):
            products = client.fetch_catalog()

        assert [p.sku for p in products] == ["A1", "B2"]
        dell = products[0]
        assert dell.part_number == "LAT-5440"
        assert dell.name == "Latitude 5440"
        assert dell.brand == "Dell"
        assert dell.stock == 12
        assert dell.category is None
        assert products[1].category == "Laptop"

    def test_quote_price_preferred_over_unit_price(self, client, catalog_body):
        with patch("core.upstream_client.requests.post",
                   return_value=make_response(200, catalog_body)):
            products = client.fetch_catalog()

        assert products[0].price == 899.0
        assert products[1].price == 1099.0

    def test_non_string_fields_normalized(self, client):
        body = {"serviceresponse": {"products": [
            {"ingrampartnumber": 12345, "vendorpartnumber": 900, "category": {"id": 3}},
        ]}}
        with patch("core.upstream_client.requests.post", return_value=make_response(200, body)):
            product = client.fetch_catalog()[0]

        assert product.sku == "12345"
        assert product.part_number == "900"
        assert product.name == ""
        assert product.category is None

    def test_empty_service_response(self, client):
        with patch("core.upstream_client.requests.post",
                   return_value=make_response(200, {"serviceresponse": None})):
            assert client.fetch_catalog() == []

    def test_each_call_fetches_token(self, client, token_cache, catalog_body):
        with patch("core.upstream_client.requests.post",
                   return_value=make_response(200, catalog_body)):
            client.fetch_catalog()
            client.fetch_catalog()

        assert token_cache.get_token.call_count == 2


class TestFetchCatalogFailures:
    """Every upstream failure becomes UpstreamUnavailable."""

    def test_non_2xx(self, client):
        with patch("core.upstream_client.requests.post", return_value=make_response(503, {})):
            with pytest.raises(UpstreamUnavailable) as exc_info:
                client.fetch_catalog()

        assert exc_info.value.status == 503
        assert exc_info.value.operation == "catalog"
        assert exc_info.value.correlation_id.startswith("quotedesk-")

    def test_timeout(self, client):
        with patch("core.upstream_client.requests.post", side_effect=requests.Timeout("slow")):
            with pytest.raises(UpstreamUnavailable):
                client.fetch_catalog()

    def test_invalid_json(self, client):
        response = make_response(200, json_error=ValueError("bad json"))
        with patch("core.upstream_client.requests.post", return_value=response):
            with pytest.raises(UpstreamUnavailable):
                client.fetch_catalog()

    def test_non_object_body(self, client):
        with patch("core.upstream_client.requests.post", return_value=make_response(200, [1, 2])):
            with pytest.raises(UpstreamUnavailable):
                client.fetch_catalog()

    def test_token_failure_propagates(self, client, token_cache):
        token_cache.get_token.side_effect = UpstreamAuthError("no token")
        with patch("core.upstream_client.requests.post") as mock_post:
            with pytest.raises(UpstreamAuthError):
                client.fetch_catalog()

        mock_post.assert_not_called()


class TestCreateQuote:
    """Upstream quote creation."""

    def test_quote_request(self, client):
        lines = [QuoteLine("A1", 2), QuoteLine("B2", 1)]
        with patch("core.upstream_client.requests.post",
                   return_value=make_response(200, {"quoteNumber": "QUO-1001"})) as mock_post:
            ref = client.create_quote(lines)

        args, kwargs = mock_post.call_args
        assert args[0] == "https://upstream.test/resellers/v6/quotes"
        body = kwargs["json"]
        assert body["requestpreamble"]["customernumber"] == "20-222222"
        assert body["quoteName"].startswith("QuoteDesk-")
        assert body["products"] == [
            {"ingrampartnumber": "A1", "quantity": 2},
            {"ingrampartnumber": "B2", "quantity": 1},
        ]
        assert kwargs["headers"]["IM-CorrelationID"].startswith("quotedesk-quote-")

        assert ref.quote_number == "QUO-1001"
        assert ref.quote_name == body["quoteName"]

    def test_explicit_quote_name(self, client):
        with patch("core.upstream_client.requests.post",
                   return_value=make_response(200, {"quoteNumber": 42})) as mock_post:
            ref = client.create_quote([QuoteLine("A1", 1)], quote_name="Spring refresh")

        assert mock_post.call_args.kwargs["json"]["quoteName"] == "Spring refresh"
        assert ref.quote_number == "42"

    def test_missing_quote_number(self, client):
        with patch("core.upstream_client.requests.post", return_value=make_response(200, {})):
            with pytest.raises(UpstreamUnavailable) as exc_info:
                client.create_quote([QuoteLine("A1", 1)])

        assert exc_info.value.operation == "quote"

    def test_server_error(self, client):
        with patch("core.upstream_client.requests.post", return_value=make_response(500, {})):
            with pytest.raises(UpstreamUnavailable):
                client.create_quote([QuoteLine("A1", 1)])


class TestCorrelationId:

    def test_derived_from_milliseconds(self):
        with patch("core.upstream_client.time.time", return_value=1700000000.5):
            assert make_correlation_id() == "quotedesk-1700000000500"
            assert make_correlation_id("quote") == "quotedesk-quote-1700000000500"
