"""
Services layer for the cart pricing service.

This module contains the business logic services:
- PricingResolver: ERP price for one line item (cache + catalog fallback)
- PriceAggregator: Concurrent pricing of a batch into one total
- CartSyncService: Cart line matching and batched price reconciliation
- OrderIdentifierResolver / InvoiceService: ERP order numbers on invoices
- CompanyFieldResolver / ProductShowPriceCache: pricing context helpers

Thread Model:
    Main Thread (Flask request handling)
    └── PriceAggregator pool (Pricing_N workers, one lookup per item)

The PriceCache and ProductShowPriceCache are shared by all threads and
guarded by their own locks.
"""

from .price_cache import PriceCache, fingerprint
from .catalog_pricing import CatalogPriceFallback
from .pricing_resolver import ErpPricingClient, PricingResolver
from .aggregator import PriceAggregator
from .storefront_client import StorefrontClient
from .cart_matcher import CartLineMatcher
from .cart_reconciler import (
    CartPriceReconciler,
    CartSyncOutcome,
    CartSyncService,
    FixedPerItemSettlingPolicy,
    SettlingPolicy,
)
from .company_fields import (
    CompanyFieldResolver,
    CustomerDataProvider,
    GraphQLCompanyFieldProvider,
    extract_company_fields,
)
from .show_price import ProductShowPriceCache
from .order_identifier import OrderIdentifierResolver
from .invoice_service import InvoiceService

__all__ = [
    "PriceCache",
    "fingerprint",
    "CatalogPriceFallback",
    "ErpPricingClient",
    "PricingResolver",
    "PriceAggregator",
    "StorefrontClient",
    "CartLineMatcher",
    "CartPriceReconciler",
    "CartSyncOutcome",
    "CartSyncService",
    "FixedPerItemSettlingPolicy",
    "SettlingPolicy",
    "CompanyFieldResolver",
    "CustomerDataProvider",
    "GraphQLCompanyFieldProvider",
    "extract_company_fields",
    "ProductShowPriceCache",
    "OrderIdentifierResolver",
    "InvoiceService",
]
