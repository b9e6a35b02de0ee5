"""
Data models for the cart pricing service.

This module contains dataclasses for:
- Pricing: PricingContext, LineItem, ResolvedPrice and the remote result variants
- Cart: CartLine, MatchResult, ReconciliationRecord, CartPriceSettlement
- Order: OrderIdentifierMapping, OrderIntegrationInfo

Request-scoped inputs (PricingContext, LineItem) and ResolvedPrice are
frozen so they can be handed to aggregator worker threads and shared out
of the price cache without copying.
"""

from .pricing import (
    DEFAULT_CURRENCY,
    PriceSource,
    PricingContext,
    VariantPrice,
    LineItem,
    ResolvedPrice,
    ValidPricing,
    InvalidPricing,
    MalformedPricing,
    normalize_pricing_response,
    ItemPrice,
    PriceAggregate,
)
from .cart import (
    CartLine,
    MatchedPair,
    MatchResult,
    ReconciliationRecord,
    CartPriceSettlement,
)
from .order import OrderIdentifierMapping, OrderIntegrationInfo

__all__ = [
    # Pricing models
    "DEFAULT_CURRENCY",
    "PriceSource",
    "PricingContext",
    "VariantPrice",
    "LineItem",
    "ResolvedPrice",
    "ValidPricing",
    "InvalidPricing",
    "MalformedPricing",
    "normalize_pricing_response",
    "ItemPrice",
    "PriceAggregate",
    # Cart models
    "CartLine",
    "MatchedPair",
    "MatchResult",
    "ReconciliationRecord",
    "CartPriceSettlement",
    # Order models
    "OrderIdentifierMapping",
    "OrderIntegrationInfo",
]
