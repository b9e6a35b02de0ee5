"""
Time-boxed cache of resolved ERP prices.

One PriceCache is created per process (in create_app) and passed to every
PricingResolver. Entries expire after five minutes; a read past expiry is a
miss and drops the entry.

Only fully identified contexts are ever cached - a context missing the
customer id or group code is indistinguishable from a lookup that has not
finished loading company data, so the resolver bypasses the cache for it.

Thread Safety:
    - Aggregator worker threads read and write concurrently
    - All operations take threading.Lock
    - Cached ResolvedPrice values are frozen, safe to share
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from models.pricing import LineItem, PricingContext, ResolvedPrice
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60

PriceKey = Tuple[str, str, str, str, int]


def fingerprint(context: PricingContext, item: LineItem) -> PriceKey:
    """
    Cache key for one pricing request.

    Quantity is part of the key because ERP prices may be quantity-tiered.
    Missing ids are spelled "null" so the key is always fully populated.
    """
    return (
        context.customer_id or "null",
        context.group_code or "null",
        str(item.product_id),
        item.sku,
        item.quantity,
    )


@dataclass(frozen=True)
class PriceCacheEntry:
    key: PriceKey
    value: ResolvedPrice
    expires_at: float


class PriceCache:
    """
    Thread-safe TTL map from request fingerprint to ResolvedPrice.

    Usage:
        cache = PriceCache()
        key = fingerprint(context, item)

        cached = cache.get(key)
        if cached is None:
            cache.put(key, resolved)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            ttl_seconds: Default lifetime of an entry
            clock: Monotonic time source (tests inject a fake clock)

        Raises:
            ValueError: If ttl_seconds is not positive
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[PriceKey, PriceCacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: PriceKey) -> Optional[ResolvedPrice]:
        """
        Return the cached price, or None on miss or expiry.

        Expired entries are evicted on read.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                logger.debug(f"Price cache entry expired: {key}")
                return None
            return entry.value

    def put(self, key: PriceKey, value: ResolvedPrice, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds (default TTL if None)."""
        lifetime = self._ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = PriceCacheEntry(
                key=key,
                value=value,
                expires_at=self._clock() + lifetime,
            )

    def clear(self) -> int:
        """
        Remove all entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared {count} entries from price cache")
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
