"""
ERP price resolution with cache and catalog fallback.

Resolution order for one line item:
    1. Not privileged            -> catalog fallback, no remote call
    2. Privileged, partial ids   -> remote call with null ids, cache bypassed
    3. Privileged, full ids      -> cache hit returns immediately
    4. Cache miss                -> POST to the ERP pricing webhook
    5. Transport/HTTP/JSON error -> catalog fallback (logged)
    6. valid=false / no netPrice -> catalog fallback, remote error kept
    7. Valid price               -> remote ResolvedPrice, written to cache

resolve() never raises for remote problems. Callers get exactly one
ResolvedPrice per call.

Usage:
    resolver = PricingResolver(
        pricing_client=ErpPricingClient(http_client, config.ERP_PRICING_URL),
        cache=price_cache,
        fallback=CatalogPriceFallback(),
    )
    price = resolver.resolve(context, item)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from core.exceptions import PricingSourceError, RemoteServiceError
from core.http_client import WebhookClient
from models.pricing import (
    InvalidPricing,
    LineItem,
    MalformedPricing,
    PriceSource,
    PricingContext,
    RemotePricingResult,
    ResolvedPrice,
    ValidPricing,
    normalize_pricing_response,
)
from logging_config import get_logger

from .catalog_pricing import CatalogPriceFallback
from .price_cache import PriceCache, fingerprint


logger = get_logger(__name__)


class ErpPricingClient:
    """Thin client for the ERP pricing webhook."""

    def __init__(self, http_client: WebhookClient, url: str):
        self._http = http_client
        self._url = url

    @property
    def is_configured(self) -> bool:
        return bool(self._url)

    @staticmethod
    def build_request(context: PricingContext, item: LineItem) -> Dict[str, Any]:
        """
        Request body for one item.

        Missing ids are sent as explicit nulls; the ERP side applies its own
        default policy for them.
        """
        return {
            "customer_id": context.customer_id or None,
            "customer_group_code": context.group_code or None,
            "ship_to_num": "",
            "product_id": str(item.product_id),
            "sku": item.sku or "",
            "quantity": item.quantity,
        }

    def fetch(self, context: PricingContext, item: LineItem) -> RemotePricingResult:
        """
        Query the webhook and classify the answer.

        Raises:
            PricingSourceError: On transport error, non-2xx or invalid JSON
        """
        if not self._url:
            raise PricingSourceError("ERP_PRICING_URL is not configured")

        raw = self._http.post_json(
            self._url,
            self.build_request(context, item),
            error_cls=PricingSourceError,
        )
        return normalize_pricing_response(raw)


class PricingResolver:
    """
    Resolves a unit price for one line item under one pricing context.

    Attributes:
        cache: Shared PriceCache (one per process)
        fallback: Catalog price fallback used whenever ERP pricing is unusable
    """

    def __init__(
        self,
        pricing_client: ErpPricingClient,
        cache: PriceCache,
        fallback: Optional[CatalogPriceFallback] = None
    ):
        self._client = pricing_client
        self.cache = cache
        self.fallback = fallback or CatalogPriceFallback()

    def resolve(self, context: PricingContext, item: LineItem) -> ResolvedPrice:
        """
        Resolve the unit price for ``item``.

        Args:
            context: Caller's pricing entitlement
            item: Line item to price

        Returns:
            ResolvedPrice with source REMOTE or FALLBACK (never raises for
            remote failures)
        """
        if not context.is_privileged:
            return self.fallback.price(item)

        cacheable = context.has_full_identity
        key = fingerprint(context, item) if cacheable else None

        if cacheable:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Price cache hit for product {item.product_id} sku={item.sku}")
                return cached

        try:
            result = self._client.fetch(context, item)
        except RemoteServiceError as e:
            logger.warning(
                f"ERP pricing unavailable for product {item.product_id} sku={item.sku}: {e.message}"
            )
            return self.fallback.price(item)

        if isinstance(result, ValidPricing):
            resolved = ResolvedPrice(
                unit_price=result.net_price,
                currency=result.currency,
                source=PriceSource.REMOTE,
                valid=True,
            )
            if cacheable:
                self.cache.put(key, resolved)
            return resolved

        if isinstance(result, InvalidPricing):
            logger.warning(
                f"ERP price not valid for product {item.product_id} sku={item.sku}: {result.error}"
            )
            return self.fallback.price(item, error=result.error)

        if isinstance(result, MalformedPricing):
            logger.error(
                f"Malformed ERP pricing response for product {item.product_id} "
                f"sku={item.sku}: {result.reason}"
            )
            return self.fallback.price(item, error=result.reason)

        # Unreachable with the three variants above
        return self.fallback.price(item)
