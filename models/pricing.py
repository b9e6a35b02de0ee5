"""
Pricing data models.

These models describe one pricing request (context + line item), its
outcome (ResolvedPrice) and the aggregate over a batch of items.

Thread Safety:
    - PricingContext, LineItem, VariantPrice and ResolvedPrice are frozen
      dataclasses and are passed to aggregator worker threads as-is
    - Cached ResolvedPrice values can be handed to any number of callers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from core.exceptions import InvalidLineItemError


DEFAULT_CURRENCY = "USD"

ZERO = Decimal("0")


def to_decimal(value: Any, default: Optional[Decimal] = ZERO) -> Optional[Decimal]:
    """
    Convert a JSON/number value to Decimal without float artefacts.

    Floats go through str() so 19.99 stays 19.99. Booleans, blanks and
    anything unparseable return ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value
    try:
        text = str(value).strip()
        if not text:
            return default
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def to_quantity(value: Any) -> Optional[int]:
    """
    Whole-number quantity from an int, integral float or numeric string.

    Booleans and fractional values return None rather than truncating.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number = to_decimal(value, None)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


class PriceSource(Enum):
    """Where a resolved unit price came from."""

    REMOTE = "remote"
    """ERP pricing webhook returned a valid net price."""

    FALLBACK = "fallback"
    """Catalog base price (+ tax) was used instead."""


@dataclass(frozen=True)
class PricingContext:
    """
    The caller's entitlement to ERP pricing.

    Derived once per session/company by the caller (see
    services.company_fields) and never mutated during resolution.
    """

    customer_id: Optional[str] = None
    """ERP customer number (company extra field CustID)."""

    group_code: Optional[str] = None
    """ERP pricing group code (company extra field Epicor GroupCode)."""

    is_privileged: bool = False
    """True for B2B customers entitled to ERP pricing."""

    @property
    def has_full_identity(self) -> bool:
        """Both customer id and group code present - the only cacheable case."""
        return bool(self.customer_id) and bool(self.group_code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "group_code": self.group_code,
            "is_privileged": self.is_privileged,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PricingContext":
        """Create from a request body; blank ids become None."""
        return cls(
            customer_id=_optional_str(data.get("customer_id")),
            group_code=_optional_str(data.get("group_code", data.get("customer_group_code"))),
            is_privileged=bool(data.get("is_privileged", False)),
        )


@dataclass(frozen=True)
class VariantPrice:
    """One row of a product's variant price list."""

    variant_id: str
    price_ex_tax: Decimal = ZERO
    price_inc_tax: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VariantPrice":
        """
        Accepts both our own keys and the storefront's
        ``bc_calculated_price: {tax_inclusive, tax_exclusive}`` shape.
        """
        calculated = data.get("bc_calculated_price") or {}
        return cls(
            variant_id=str(data.get("variant_id", "")),
            price_ex_tax=to_decimal(
                data.get("price_ex_tax", calculated.get("tax_exclusive"))
            ),
            price_inc_tax=to_decimal(
                data.get("price_inc_tax", calculated.get("tax_inclusive"))
            ),
        )


@dataclass(frozen=True)
class LineItem:
    """
    A unit of product to be priced.

    Quantity must be >= 1; anything else is a caller error and raises
    InvalidLineItemError at construction time.
    """

    product_id: str
    sku: str
    quantity: int
    catalog_base_price: Decimal = ZERO
    catalog_tax_price: Optional[Decimal] = None
    variant_id: Optional[str] = None
    variants: Tuple[VariantPrice, ...] = ()

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidLineItemError(
                f"Quantity must be an integer, got {self.quantity!r}",
                product_id=self.product_id,
                sku=self.sku,
            )
        if self.quantity < 1:
            raise InvalidLineItemError(
                f"Quantity must be at least 1, got {self.quantity}",
                product_id=self.product_id,
                sku=self.sku,
            )

    def variant_price(self, variant_id: Optional[str] = None) -> Optional[VariantPrice]:
        """Variant price row for ``variant_id`` (defaults to this item's variant)."""
        wanted = variant_id if variant_id is not None else self.variant_id
        if not wanted:
            return None
        for variant in self.variants:
            if variant.variant_id == str(wanted):
                return variant
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "quantity": self.quantity,
            "catalog_base_price": str(self.catalog_base_price),
            "catalog_tax_price": (
                str(self.catalog_tax_price) if self.catalog_tax_price is not None else None
            ),
            "variant_id": self.variant_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        """
        Create from a request body.

        Raises:
            InvalidLineItemError: If quantity is not a whole number or is < 1
        """
        product_id = data.get("product_id", data.get("productId"))
        if product_id in (None, ""):
            raise InvalidLineItemError("product_id is required")

        sku = str(data.get("sku") or data.get("variant_sku") or "")
        raw_quantity = data.get("quantity", 1)
        quantity = to_quantity(raw_quantity)
        if quantity is None:
            raise InvalidLineItemError(
                f"Quantity must be an integer, got {raw_quantity!r}",
                product_id=product_id,
                sku=sku,
            )

        base_price = to_decimal(data.get("catalog_base_price", data.get("base_price")), None)
        if base_price is None:
            base_price = ZERO

        variant_id = data.get("variant_id")
        return cls(
            product_id=str(product_id),
            sku=sku,
            quantity=quantity,
            catalog_base_price=base_price,
            catalog_tax_price=to_decimal(
                data.get("catalog_tax_price", data.get("tax_price")), None
            ),
            variant_id=str(variant_id) if variant_id not in (None, "", 0) else None,
            variants=tuple(VariantPrice.from_dict(v) for v in data.get("variants") or []),
        )


@dataclass(frozen=True)
class ResolvedPrice:
    """
    Outcome of resolving one LineItem under one PricingContext.

    A remote price is only ever built from a validated payload, so
    ``source=REMOTE`` implies ``unit_price >= 0`` and a non-empty currency.
    """

    unit_price: Decimal
    currency: str = DEFAULT_CURRENCY
    source: PriceSource = PriceSource.FALLBACK
    valid: bool = True
    error: Optional[str] = None
    """Remote-supplied error text kept for diagnostics on fallback."""

    @property
    def is_remote(self) -> bool:
        return self.source is PriceSource.REMOTE and self.valid

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "unit_price": str(self.unit_price),
            "currency": self.currency,
            "source": self.source.value,
            "valid": self.valid,
        }
        if self.error:
            data["error"] = self.error
        return data


# =============================================================================
# REMOTE PRICING RESULT - tagged variants produced at the webhook boundary
# =============================================================================

@dataclass(frozen=True)
class ValidPricing:
    """ERP returned a usable net price."""

    net_price: Decimal
    currency: str = DEFAULT_CURRENCY
    base_price: Optional[Decimal] = None
    discount: Optional[Decimal] = None


@dataclass(frozen=True)
class InvalidPricing:
    """ERP answered, but declined to price the item (valid=false, no netPrice)."""

    error: Optional[str] = None


@dataclass(frozen=True)
class MalformedPricing:
    """The response body did not have the expected shape."""

    reason: str


RemotePricingResult = Union[ValidPricing, InvalidPricing, MalformedPricing]


def normalize_pricing_response(raw: Any) -> RemotePricingResult:
    """
    Classify a raw pricing webhook body.

    The webhook may answer with a single object or a list wrapping one
    object; a list is reduced to its first element before validation.

    Args:
        raw: Decoded JSON body

    Returns:
        ValidPricing, InvalidPricing or MalformedPricing
    """
    if isinstance(raw, list):
        if not raw:
            return MalformedPricing("empty response array")
        raw = raw[0]

    if not isinstance(raw, dict):
        return MalformedPricing(f"expected object, got {type(raw).__name__}")

    pricing = raw.get("pricing")
    if pricing is None:
        if raw.get("success") is False:
            return InvalidPricing(_optional_str(raw.get("error")) or "pricing request unsuccessful")
        return MalformedPricing("response has no pricing object")
    if not isinstance(pricing, dict):
        return MalformedPricing("pricing is not an object")

    error = _optional_str(pricing.get("error"))

    if raw.get("success") is False:
        return InvalidPricing(error or "pricing request unsuccessful")

    if not _is_true(pricing.get("valid")) or pricing.get("netPrice") is None:
        return InvalidPricing(error or "Price not available or invalid")

    net_price = to_decimal(pricing.get("netPrice"), None)
    if net_price is None:
        return MalformedPricing(f"netPrice is not numeric: {pricing.get('netPrice')!r}")
    if net_price < 0:
        return MalformedPricing(f"netPrice is negative: {net_price}")

    currency = _optional_str(pricing.get("currency")) or DEFAULT_CURRENCY
    return ValidPricing(
        net_price=net_price,
        currency=currency,
        base_price=to_decimal(pricing.get("basePrice"), None),
        discount=to_decimal(pricing.get("discount"), None),
    )


# =============================================================================
# AGGREGATE
# =============================================================================

@dataclass(frozen=True)
class ItemPrice:
    """One aggregated item: its resolved unit price and extended line total."""

    item: LineItem
    price: ResolvedPrice

    @property
    def line_total(self) -> Decimal:
        return self.price.unit_price * self.item.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.item.product_id,
            "sku": self.item.sku,
            "quantity": self.item.quantity,
            "line_total": str(self.line_total),
            **self.price.to_dict(),
        }


@dataclass
class PriceAggregate:
    """
    Subtotal/total over a batch of line items.

    ``items`` is in the same order as the input batch regardless of the
    order in which remote lookups completed.
    """

    total: Decimal = ZERO
    currency: str = DEFAULT_CURRENCY
    items: List[ItemPrice] = field(default_factory=list)

    @property
    def remote_count(self) -> int:
        return sum(1 for entry in self.items if entry.price.is_remote)

    @property
    def fallback_count(self) -> int:
        return len(self.items) - self.remote_count

    @property
    def is_fully_degraded(self) -> bool:
        """No item priced remotely (non-privileged caller or ERP down)."""
        return bool(self.items) and self.remote_count == 0

    def price_for(self, index: int) -> ResolvedPrice:
        return self.items[index].price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": str(self.total),
            "currency": self.currency,
            "remote_count": self.remote_count,
            "fallback_count": self.fallback_count,
            "items": [entry.to_dict() for entry in self.items],
        }


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_true(value: Any) -> bool:
    """JSON ``true`` or the string forms some webhook nodes emit ("true", "1")."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return False
