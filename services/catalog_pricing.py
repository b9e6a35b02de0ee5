"""Catalog price fallback: deterministic, local, no I/O."""

from __future__ import annotations

from decimal import Decimal

from models.pricing import (
    DEFAULT_CURRENCY,
    LineItem,
    PriceSource,
    ResolvedPrice,
    ZERO,
)


class CatalogPriceFallback:
    """
    Prices a line item from the storefront catalog data it carries.

    A variant price list, when present for the item's variant, takes
    precedence over the flat base price. Tax is added to the base price
    only when the store displays tax-inclusive prices.
    """

    def __init__(self, show_inclusive_tax_price: bool = False, currency: str = DEFAULT_CURRENCY):
        self.show_inclusive_tax_price = show_inclusive_tax_price
        self.currency = currency

    def unit_price(self, item: LineItem) -> Decimal:
        variant = item.variant_price()
        if variant is not None:
            price = variant.price_inc_tax if self.show_inclusive_tax_price else variant.price_ex_tax
            # A zero variant price means "not set", not "free"
            if price > 0:
                return price
            return max(item.catalog_base_price, ZERO)

        price = item.catalog_base_price
        if self.show_inclusive_tax_price and item.catalog_tax_price:
            price = price + item.catalog_tax_price
        return max(price, ZERO)

    def price(self, item: LineItem, error: str = None) -> ResolvedPrice:
        """
        Fallback ResolvedPrice for ``item``.

        Args:
            item: Line item to price
            error: Remote error text to carry along for diagnostics
        """
        return ResolvedPrice(
            unit_price=self.unit_price(item),
            currency=self.currency,
            source=PriceSource.FALLBACK,
            valid=True,
            error=error,
        )
