"""
Distributor API client.

Maps the two upstream calls Quote Desk needs onto internal models:
- fetch_catalog(): price and availability -> list[ProductRecord]
- create_quote(): quote creation -> UpstreamQuoteRef

THREAD SAFETY:
    - The client holds no mutable state of its own
    - Each call fetches a bearer token from the shared TokenCache and
      issues exactly one HTTP request (no retries)
    - Safe to share one instance between request threads and the
      product refresh thread

Usage:
    client = UpstreamClient(api_url, customer_number, token_cache)

    products = client.fetch_catalog()            # full catalog
    products = client.fetch_catalog("1234567")   # single SKU lookup

    ref = client.create_quote([QuoteLine("1234567", 2)])
    print(ref.quote_number)
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Sequence

import requests

from logging_config import get_logger
from models.product import ProductRecord
from models.quote import QuoteLine, UpstreamQuoteRef
from .exceptions import UpstreamUnavailable
from .token_cache import TokenCache


# Module logger
logger = get_logger(__name__)

CORRELATION_PREFIX = "quotedesk"


def make_correlation_id(kind: Optional[str] = None) -> str:
    """
    Build a per-call correlation id from the current time in milliseconds.

    Not guaranteed globally unique; enough to line up our logs with the
    distributor's.
    """
    stamp = int(time.time() * 1000)
    if kind:
        return f"{CORRELATION_PREFIX}-{kind}-{stamp}"
    return f"{CORRELATION_PREFIX}-{stamp}"


class UpstreamClient:
    """
    Request/response mapper for the distributor pricing and quote API.

    Every failure (transport error, timeout, non-2xx, unmappable body)
    becomes UpstreamUnavailable. UpstreamAuthError from the token cache
    propagates unchanged.
    """

    def __init__(
        self,
        api_url: str,
        customer_number: str,
        token_cache: TokenCache,
        country_code: str = "US",
        timeout_seconds: float = 30.0,
    ):
        self._api_url = api_url.rstrip("/")
        self._customer_number = customer_number
        self._country_code = country_code
        self._token_cache = token_cache
        self._timeout = timeout_seconds

    # =========================================================================
    # CATALOG
    # =========================================================================

    def fetch_catalog(self, sku: Optional[str] = None) -> List[ProductRecord]:
        """
        Fetch price and availability.

        Args:
            sku: Restrict the lookup to one distributor part number.
                 None fetches the unfiltered catalog.

        Returns:
            Products in upstream order

        Raises:
            UpstreamUnavailable: If the call fails
            UpstreamAuthError: If no bearer token could be obtained
        """
        payload = {
            "requestpreamble": self._preamble(),
            "products": [{"ingrampartnumber": sku}] if sku else [],
        }
        body = self._post("catalog/priceandavailability", payload, operation="catalog")

        try:
            raw_products = (body.get("serviceresponse") or {}).get("products") or []
            products = [ProductRecord.from_upstream(p) for p in raw_products]
        except (AttributeError, TypeError) as e:
            logger.error(f"Unexpected catalog response shape: {e}")
            raise UpstreamUnavailable("catalog", "Malformed catalog response") from e

        logger.debug(f"Catalog fetched: {len(products)} products (sku={sku or '*'})")
        return products

    # =========================================================================
    # QUOTES
    # =========================================================================

    def create_quote(
        self,
        lines: Sequence[QuoteLine],
        quote_name: Optional[str] = None,
    ) -> UpstreamQuoteRef:
        """
        Create a quote upstream.

        Args:
            lines: Ordered product lines
            quote_name: Name shown in the distributor portal

        Returns:
            UpstreamQuoteRef with the distributor's quote number

        Raises:
            UpstreamUnavailable: If the call fails or no quoteNumber comes back
        """
        if quote_name is None:
            quote_name = f"QuoteDesk-{int(time.time() * 1000)}"

        payload = {
            "requestpreamble": self._preamble(),
            "quoteName": quote_name,
            "products": [
                {"ingrampartnumber": line.sku, "quantity": line.quantity}
                for line in lines
            ],
        }
        body = self._post("quotes", payload, operation="quote", correlation_kind="quote")

        quote_number = body.get("quoteNumber")
        if not quote_number:
            logger.error("Quote response missing quoteNumber")
            raise UpstreamUnavailable("quote", "Quote response missing quoteNumber")

        logger.info(f"Upstream quote created: {quote_number} ({len(lines)} lines)")
        return UpstreamQuoteRef(quote_number=str(quote_number), quote_name=quote_name)

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _preamble(self) -> Dict[str, str]:
        return {
            "isocountrycode": self._country_code,
            "customernumber": self._customer_number,
        }

    def _headers(self, bearer: str, correlation_id: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {bearer}",
            "IM-CustomerNumber": self._customer_number,
            "IM-CountryCode": self._country_code,
            "IM-CorrelationID": correlation_id,
        }

    def _post(
        self,
        path: str,
        payload: Dict[str, Any],
        operation: str,
        correlation_kind: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Issue one authenticated POST and return the decoded JSON body."""
        token = self._token_cache.get_token()
        correlation_id = make_correlation_id(correlation_kind)
        url = f"{self._api_url}/{path}"

        try:
            response = requests.post(
                url,
                json=payload,
                headers=self._headers(token.value, correlation_id),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Upstream {operation} request failed [{correlation_id}]: {e}")
            raise UpstreamUnavailable(
                operation, f"Upstream {operation} request failed: {e}",
                correlation_id=correlation_id,
            ) from e

        if not response.ok:
            logger.error(
                f"Upstream {operation} answered {response.status_code} [{correlation_id}]"
            )
            raise UpstreamUnavailable(
                operation, status=response.status_code, correlation_id=correlation_id
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Upstream {operation} returned invalid JSON [{correlation_id}]")
            raise UpstreamUnavailable(
                operation, f"Upstream {operation} returned invalid JSON",
                correlation_id=correlation_id,
            ) from e

        if not isinstance(body, dict):
            raise UpstreamUnavailable(
                operation, f"Upstream {operation} returned unexpected body",
                correlation_id=correlation_id,
            )
        return body
