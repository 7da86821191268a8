"""
Product catalog data models.

These models represent point-in-time snapshots of the distributor catalog.
Used by the product cache for serving reads and by routes for JSON output.

Thread Safety:
    - ProductRecord and ProductSnapshot are frozen dataclasses (immutable)
    - Safe to read from any thread without locks
    - New snapshots replace old ones atomically
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any, Iterable, Optional


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class ProductRecord:
    """
    A single catalog entry from the price and availability endpoint.

    Immutable snapshot of one product's state.
    """

    sku: str
    """Distributor part number (ingrampartnumber)."""

    part_number: str = ""
    """Vendor part number."""

    name: str = ""
    """Product description."""

    brand: str = ""
    """Vendor name."""

    price: Optional[float] = None
    """Negotiated quote price when offered, otherwise the unit price."""

    stock: Optional[int] = None
    """Total availability across warehouses."""

    category: Optional[str] = None
    """Category, only present when the upstream response carries one."""

    def matches_brand(self, brand: str) -> bool:
        return (self.brand or "").lower() == brand.lower()

    def matches_category(self, category: str) -> bool:
        # A record without a category never matches a category filter
        if self.category is None:
            return False
        return self.category.lower() == category.lower()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape served by GET /api/products."""
        result = {
            "sku": self.sku,
            "partNumber": self.part_number,
            "name": self.name,
            "brand": self.brand,
            "price": self.price,
            "stock": self.stock,
        }
        if self.category is not None:
            result["category"] = self.category
        return result

    @classmethod
    def from_upstream(cls, product: Dict[str, Any]) -> "ProductRecord":
        """
        Map one entry of serviceresponse.products into a ProductRecord.

        The negotiated quotePrice wins over unitprice whenever it is present.
        """
        price = product.get("quotePrice")
        if price is None or price == "":
            price = product.get("unitprice")

        category = product.get("category")

        return cls(
            sku=_text(product.get("ingrampartnumber")),
            part_number=_text(product.get("vendorpartnumber")),
            name=_text(product.get("description")),
            brand=_text(product.get("vendorname")),
            price=price,
            stock=product.get("totalavailability"),
            category=category if isinstance(category, str) else None,
        )


@dataclass(frozen=True)
class ProductSnapshot:
    """
    One complete catalog as fetched by a single refresh.

    This is a FROZEN dataclass - the product cache never edits a snapshot,
    it builds a new one and swaps the reference.

    Usage:
        snapshot = ProductSnapshot.create(products, fetched_at=clock())
        if snapshot.age_seconds(clock()) > ttl:
            # stale, but still served
            pass
    """

    products: tuple[ProductRecord, ...]
    """Immutable tuple of products (use tuple for frozen dataclass)."""

    fetched_at: float
    """Clock reading (seconds) when this snapshot was fetched."""

    @classmethod
    def create(cls, products: Iterable[ProductRecord], fetched_at: float) -> "ProductSnapshot":
        return cls(products=tuple(products), fetched_at=fetched_at)

    def age_seconds(self, now: float) -> float:
        """How old this snapshot is relative to the given clock reading."""
        return max(0.0, now - self.fetched_at)

    def __len__(self) -> int:
        return len(self.products)
