"""
Subtotal/total aggregation over a batch of line items.

Every item is resolved concurrently on a bounded thread pool, so one slow
or failing ERP lookup never holds up the others. The merge step is keyed
by each item's position in the input batch, not by completion order.

Degraded modes are not errors:
    - Non-privileged caller: every item priced from the catalog
    - ERP down: every remote call fails, every item falls back
    - Partial failure: remote prices where available, catalog for the rest

Thread Model:
    Caller thread
    └── ThreadPoolExecutor (Pricing_N workers, max_workers bounded)
        └── PricingResolver.resolve(context, item) per item

Usage:
    aggregator = PriceAggregator(resolver, max_workers=8)
    aggregate = aggregator.aggregate(context, items)
    aggregate.total, aggregate.currency
    aggregator.shutdown()
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from models.pricing import (
    DEFAULT_CURRENCY,
    ItemPrice,
    LineItem,
    PriceAggregate,
    PricingContext,
    ResolvedPrice,
    ZERO,
)
from logging_config import get_logger

from .pricing_resolver import PricingResolver


logger = get_logger(__name__)

DEFAULT_MAX_WORKERS = 8


class PriceAggregator:
    """
    Fans pricing lookups out across a thread pool and sums the results.

    The pool is created once and reused for every aggregate; call
    shutdown() when the application stops.
    """

    def __init__(
        self,
        resolver: PricingResolver,
        max_workers: int = DEFAULT_MAX_WORKERS,
        default_currency: str = DEFAULT_CURRENCY
    ):
        """
        Args:
            resolver: Resolver used for every item
            max_workers: Upper bound on concurrent ERP lookups
            default_currency: Currency reported when nothing priced remotely

        Raises:
            ValueError: If max_workers < 1
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self._resolver = resolver
        self._default_currency = default_currency
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="Pricing"
        )

    def aggregate(self, context: PricingContext, items: Sequence[LineItem]) -> PriceAggregate:
        """
        Resolve every item and combine into one total.

        Args:
            context: Caller's pricing entitlement (shared by all items)
            items: Line items to price

        Returns:
            PriceAggregate with one ItemPrice per input item, in input order
        """
        if not items:
            return PriceAggregate(total=ZERO, currency=self._default_currency, items=[])

        futures: Dict[Future, int] = {
            self._executor.submit(self._resolver.resolve, context, item): index
            for index, item in enumerate(items)
        }

        resolved: List[Optional[ResolvedPrice]] = [None] * len(items)
        currency = self._default_currency

        for future in as_completed(futures):
            index = futures[future]
            item = items[index]
            try:
                price = future.result()
            except Exception as e:
                # One item's failure must not abort the batch
                logger.error(
                    f"Pricing failed for product {item.product_id} sku={item.sku}, "
                    f"using catalog price: {e}",
                    exc_info=True
                )
                price = self._resolver.fallback.price(item, error=str(e))

            if price.is_remote:
                currency = price.currency
            resolved[index] = price

        entries = [ItemPrice(item=item, price=price) for item, price in zip(items, resolved)]
        total = sum((entry.line_total for entry in entries), Decimal("0"))

        aggregate = PriceAggregate(total=total, currency=currency, items=entries)
        logger.debug(
            f"Aggregated {len(entries)} items: total={total} {currency} "
            f"(remote={aggregate.remote_count}, fallback={aggregate.fallback_count})"
        )
        return aggregate

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool."""
        self._executor.shutdown(wait=wait)
