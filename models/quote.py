"""
Quote data models.

These models represent a quote as it flows through the workflow:
create (PendingApproval) -> approve (Approved).

The persistence layer stores Quote rows; QuoteWorkflow is the only code
that sets status and final_price.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, List, Optional


DEFAULT_PENDING_INFO = "Pending"
DEFAULT_FINAL_PRICE = "TBD"


class QuoteStatus(Enum):
    """
    Status of a quote.

    Lifecycle:
        PENDING_APPROVAL -> APPROVED
    """

    PENDING_APPROVAL = "Pending Approval"
    """Quote exists upstream and locally, waiting for an approver."""

    APPROVED = "Approved"
    """Terminal state."""


@dataclass(frozen=True)
class QuoteLine:
    """One ordered product line of a quote."""

    sku: str
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return {"sku": self.sku, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuoteLine":
        return cls(sku=data.get("sku", ""), quantity=data.get("quantity", 0))


@dataclass(frozen=True)
class UpstreamQuoteRef:
    """What the upstream quote endpoint handed back."""

    quote_number: str
    quote_name: str = ""


@dataclass
class Quote:
    """
    A quote record as held by the quote store.

    products keeps the caller's order; it is serialized as a JSON blob.
    """

    upstream_quote_number: str
    """Quote number assigned by the distributor."""

    user_id: int
    """Session user that created the quote."""

    products: List[QuoteLine] = field(default_factory=list)

    shipping_info: Any = DEFAULT_PENDING_INFO
    tax_info: Any = DEFAULT_PENDING_INFO

    status: QuoteStatus = QuoteStatus.PENDING_APPROVAL

    final_price: Optional[Any] = None
    """Set on approval; "TBD" when the approver gives none."""

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    id: Optional[int] = None
    """Assigned by the quote store on insert."""

    @property
    def is_approved(self) -> bool:
        return self.status == QuoteStatus.APPROVED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape served by the quote routes."""
        return {
            "id": self.id,
            "upstreamQuoteNumber": self.upstream_quote_number,
            "userId": self.user_id,
            "products": [line.to_dict() for line in self.products],
            "shippingInfo": self.shipping_info,
            "taxInfo": self.tax_info,
            "status": self.status.value,
            "finalPrice": self.final_price,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
