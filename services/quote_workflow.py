"""
Quote workflow: create -> approve.

State machine:
    (none) --create--> PENDING_APPROVAL --approve--> APPROVED

create_quote talks to the distributor first and only writes the local
record after the upstream quote exists, so a failed upstream call never
leaves a local quote behind. The reverse gap is not compensated: if the
local write fails after upstream success, the upstream quote is orphaned
and logged at ERROR with its number.

approve_quote is an overwrite. Approving an already approved quote
succeeds again with the new values.
"""

from __future__ import annotations

from typing import Any, List, Optional

from core.exceptions import (
    InvalidQuoteRequest,
    PersistenceError,
    QuoteNotFound,
    Unauthenticated,
)
from core.upstream_client import UpstreamClient
from logging_config import get_logger
from models.quote import (
    DEFAULT_FINAL_PRICE,
    DEFAULT_PENDING_INFO,
    Quote,
    QuoteLine,
    QuoteStatus,
)
from models.session import Identity
from persistence.quote_repository import QuoteRepository


# Module logger
logger = get_logger(__name__)


def parse_quote_lines(products: Any) -> List[QuoteLine]:
    """
    Turn a request's products list into ordered QuoteLines.

    Raises:
        InvalidQuoteRequest: If products is not a non-empty list of
            {sku, quantity} with a positive integer quantity
    """
    if not isinstance(products, list) or not products:
        raise InvalidQuoteRequest("products must be a non-empty list")

    lines = []
    for index, item in enumerate(products):
        if not isinstance(item, dict):
            raise InvalidQuoteRequest(f"products[{index}] must be an object")
        sku = item.get("sku")
        quantity = item.get("quantity")
        if not sku or not isinstance(sku, str):
            raise InvalidQuoteRequest(f"products[{index}].sku is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuoteRequest(f"products[{index}].quantity must be a positive integer")
        lines.append(QuoteLine(sku=sku, quantity=quantity))
    return lines


class QuoteWorkflow:
    """
    Only writer of quote status and final price.

    Attributes:
        repository: Quote store used for reads and writes
    """

    def __init__(self, upstream_client: UpstreamClient, repository: QuoteRepository):
        self._upstream = upstream_client
        self.repository = repository

    def create_quote(
        self,
        identity: Optional[Identity],
        products: Any,
        shipping_info: Any = None,
        tax_info: Any = None,
    ) -> Quote:
        """
        Create a quote upstream, then record it locally as pending approval.

        Args:
            identity: Authenticated caller
            products: List of {sku, quantity}
            shipping_info: Optional shipping details ("Pending" if absent)
            tax_info: Optional tax details ("Pending" if absent)

        Returns:
            The stored Quote, with its local id

        Raises:
            Unauthenticated: If no identity is given
            InvalidQuoteRequest: If products is unusable
            UpstreamUnavailable / UpstreamAuthError: If the upstream call fails
            PersistenceError: If the local write fails after upstream success
        """
        if identity is None:
            raise Unauthenticated.missing()

        lines = parse_quote_lines(products)
        ref = self._upstream.create_quote(lines)

        quote = Quote(
            upstream_quote_number=ref.quote_number,
            user_id=identity.user_id,
            products=lines,
            shipping_info=shipping_info or DEFAULT_PENDING_INFO,
            tax_info=tax_info or DEFAULT_PENDING_INFO,
            status=QuoteStatus.PENDING_APPROVAL,
        )

        try:
            stored = self.repository.add(quote)
        except PersistenceError as e:
            logger.error(
                f"Upstream quote {ref.quote_number} created but not stored locally: {e}"
            )
            e.details["upstream_quote_number"] = ref.quote_number
            raise

        logger.info(
            f"Quote {stored.id} created for user {identity.user_id} "
            f"(upstream {ref.quote_number}, {len(lines)} lines)"
        )
        return stored

    def approve_quote(
        self,
        identity: Optional[Identity],
        quote_id: int,
        final_price: Any = None,
        shipping_info: Any = None,
        tax_info: Any = None,
    ) -> Quote:
        """
        Move a quote to Approved.

        Missing values fall back to "TBD" for the final price and "Pending"
        for shipping/tax info, replacing whatever was stored before.

        Raises:
            Unauthenticated: If no identity is given
            QuoteNotFound: If no quote has that id
            PersistenceError: If the store fails
        """
        if identity is None:
            raise Unauthenticated.missing()

        quote = self.repository.update_status(
            quote_id,
            QuoteStatus.APPROVED,
            final_price=final_price or DEFAULT_FINAL_PRICE,
            shipping_info=shipping_info or DEFAULT_PENDING_INFO,
            tax_info=tax_info or DEFAULT_PENDING_INFO,
        )
        if quote is None:
            raise QuoteNotFound(quote_id)

        logger.info(f"Quote {quote_id} approved by user {identity.user_id}")
        return quote

    def get_quote(self, identity: Optional[Identity], quote_id: int) -> Quote:
        """
        Read one quote.

        Raises:
            Unauthenticated: If no identity is given
            QuoteNotFound: If no quote has that id
        """
        if identity is None:
            raise Unauthenticated.missing()

        quote = self.repository.get(quote_id)
        if quote is None:
            raise QuoteNotFound(quote_id)
        return quote
