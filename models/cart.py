"""
Cart data models.

CartLine is owned by the storefront cart; this service only reads it and
asks the cart price webhook to change its price. MatchedPair and
ReconciliationRecord carry a logical line item through matching and into
the batched reconciliation request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .pricing import LineItem, to_decimal, to_quantity, ZERO


def normalize_id(value: Any) -> str:
    """
    Compare identifiers as strings: 42, "42" and "42 " are the same product.

    None and 0 normalise to "" so they never match anything.
    """
    if value is None or value == 0:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class CartLine:
    """A persisted cart line item as read from the storefront."""

    line_id: str
    product_id: str
    variant_id: str = ""
    sku: str = ""
    quantity: int = 1
    current_unit_price: Decimal = ZERO
    name: str = ""

    @classmethod
    def from_storefront(cls, data: Dict[str, Any]) -> "CartLine":
        """
        Create from a storefront ``physicalItems`` node.

        The storefront reports ``originalPrice: {value}`` for the unit
        price currently stored on the line. Missing or unusable quantities
        are read as 1.
        """
        quantity = to_quantity(data.get("quantity"))
        original_price = data.get("originalPrice") or {}
        if not isinstance(original_price, dict):
            original_price = {}
        return cls(
            line_id=str(data.get("entityId", "")),
            product_id=normalize_id(data.get("productEntityId")),
            variant_id=normalize_id(data.get("variantEntityId")),
            sku=str(data.get("sku") or ""),
            quantity=quantity if quantity and quantity > 0 else 1,
            current_unit_price=to_decimal(original_price.get("value")),
            name=str(data.get("name") or ""),
        )


@dataclass(frozen=True)
class MatchedPair:
    """A logical line item bound to exactly one cart line."""

    item: LineItem
    cart_line: CartLine
    strategy: str
    """Name of the matching strategy that produced this pair."""


@dataclass
class MatchResult:
    """Outcome of matching a batch of logical items against a cart."""

    matched_pairs: List[MatchedPair] = field(default_factory=list)
    unmatched_items: List[LineItem] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.unmatched_items

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": [
                {
                    "product_id": pair.item.product_id,
                    "sku": pair.item.sku,
                    "line_id": pair.cart_line.line_id,
                    "strategy": pair.strategy,
                }
                for pair in self.matched_pairs
            ],
            "unmatched": [
                {"product_id": item.product_id, "sku": item.sku}
                for item in self.unmatched_items
            ],
        }


@dataclass(frozen=True)
class ReconciliationRecord:
    """One entry of the batched cart price update request."""

    line_id: str
    product_id: str
    variant_id: str
    sku: str
    quantity: int
    resolved_price: Decimal
    name: str = ""
    original_price: Decimal = ZERO

    @classmethod
    def from_pair(
        cls,
        pair: MatchedPair,
        resolved_price: Optional[Decimal] = None
    ) -> "ReconciliationRecord":
        """
        Build from a matched pair.

        Logical ids and quantity win; sku and name come from the cart line
        when it has them. Without a resolved price the line's current price
        is submitted unchanged.
        """
        line = pair.cart_line
        item = pair.item
        current = line.current_unit_price
        return cls(
            line_id=line.line_id,
            product_id=item.product_id or line.product_id,
            variant_id=item.variant_id or line.variant_id,
            sku=line.sku or item.sku,
            quantity=item.quantity,
            resolved_price=resolved_price if resolved_price is not None else current,
            name=line.name,
            original_price=current,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Wire format of one ``cart_items`` entry."""
        return {
            "item_id": self.line_id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "sku": self.sku,
            "name": self.name,
            "quantity": self.quantity,
            "original_price": float(self.original_price),
            "epicor_price": float(self.resolved_price),
        }


@dataclass
class CartPriceSettlement:
    """
    Result of one reconciliation.

    ``settle_seconds`` is how long the caller waited after the webhook
    accepted the batch; cart prices are only trusted after that.
    """

    cart_id: str
    records: List[ReconciliationRecord] = field(default_factory=list)
    settle_seconds: float = 0.0
    response: Any = None

    @property
    def submitted(self) -> bool:
        return bool(self.records)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cart_id": self.cart_id,
            "submitted": self.submitted,
            "total_items": len(self.records),
            "settle_seconds": self.settle_seconds,
        }
