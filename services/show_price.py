"""
Per-product "show price" flag.

Products opt into public price display with a storefront custom field
named ``show_price`` set to ``yes``. The lookup costs a GraphQL round
trip, so results (including failures, cached as False) are kept for the
life of the process or until clear().
"""

from __future__ import annotations

import threading
from typing import Any, Dict

from core.exceptions import RemoteServiceError
from logging_config import get_logger

from .storefront_client import StorefrontClient


logger = get_logger(__name__)

SHOW_PRICE_FIELD_NAME = "show_price"
ENABLED_VALUE = "yes"


def _normalize(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _numeric_id(product_id: Any) -> int:
    try:
        return int(str(product_id).strip())
    except (TypeError, ValueError):
        return 0


class ProductShowPriceCache:
    """Thread-safe cache of product id -> show_price flag."""

    def __init__(self, storefront: StorefrontClient):
        self._storefront = storefront
        self._flags: Dict[int, bool] = {}
        self._lock = threading.Lock()

    def is_enabled(self, product_id: Any) -> bool:
        """
        Whether prices should be shown for ``product_id``.

        Non-numeric or zero ids are never enabled.
        """
        numeric_id = _numeric_id(product_id)
        if not numeric_id:
            return False

        with self._lock:
            if numeric_id in self._flags:
                return self._flags[numeric_id]

        try:
            custom_fields = self._storefront.get_product_custom_fields(numeric_id)
        except RemoteServiceError as e:
            logger.error(f"Unable to determine show_price for product {product_id}: {e}")
            enabled = False
        else:
            field = next(
                (f for f in custom_fields if _normalize(f.get("name")) == SHOW_PRICE_FIELD_NAME),
                None,
            )
            enabled = field is not None and _normalize(field.get("value")) == ENABLED_VALUE

        with self._lock:
            self._flags[numeric_id] = enabled
        return enabled

    def clear(self) -> int:
        with self._lock:
            count = len(self._flags)
            self._flags.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._flags)
