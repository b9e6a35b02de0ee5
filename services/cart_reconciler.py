"""
Pushing resolved prices back into a storefront cart.

After items land in the cart, the cart price webhook is asked to overwrite
each matched line's price. The webhook applies the change asynchronously
and never reports completion, so after a successful POST the caller waits
a settling period proportional to the batch size before trusting the
cart's prices.

Flow:
    1. CartSyncService reads the cart's lines from the storefront
    2. CartLineMatcher binds each logical item to one cart line
    3. CartPriceReconciler POSTs ONE batched request for all matched lines
    4. SettlingPolicy blocks for 2s x matched lines

Failure handling:
    - Unmatched items are logged and dropped
    - CartPriceReconciler raises ReconciliationError on non-2xx
    - CartSyncService catches and logs it; the cart mutation already
      succeeded, so nothing is surfaced to the shopper

Usage:
    sync = CartSyncService(storefront_client, matcher, reconciler)
    outcome = sync.sync(cart_id, items, prices={0: Decimal("19.99")})
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Sequence

from core.exceptions import ReconciliationError, RemoteServiceError
from core.http_client import WebhookClient
from models.cart import (
    CartPriceSettlement,
    MatchedPair,
    MatchResult,
    ReconciliationRecord,
)
from models.pricing import LineItem
from logging_config import get_logger

from .cart_matcher import CartLineMatcher
from .storefront_client import StorefrontClient


logger = get_logger(__name__)

UPDATE_CART_PRICES_ACTION = "update_cart_prices"
DEFAULT_SECONDS_PER_ITEM = 2.0


# =============================================================================
# SETTLING POLICY
# =============================================================================

class SettlingPolicy(ABC):
    """
    How long to wait after a reconciliation POST before trusting cart prices.

    Subclasses can replace the fixed sleep with polling or a completion
    callback without touching CartPriceReconciler.
    """

    @abstractmethod
    def delay_for(self, item_count: int) -> float:
        """Seconds to wait after submitting ``item_count`` lines."""
        pass

    @abstractmethod
    def wait(self, item_count: int) -> float:
        """
        Block for the settling period.

        Returns:
            Seconds waited
        """
        pass


class FixedPerItemSettlingPolicy(SettlingPolicy):
    """
    Sleep a fixed duration per submitted line (default 2s).

    5 lines = 10s, 20 lines = 40s. ``max_seconds`` caps the wait for large
    batches; it is unset by default.
    """

    def __init__(
        self,
        seconds_per_item: float = DEFAULT_SECONDS_PER_ITEM,
        max_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        if seconds_per_item < 0:
            raise ValueError("seconds_per_item must not be negative")
        self.seconds_per_item = seconds_per_item
        self.max_seconds = max_seconds
        self._sleep = sleep

    def delay_for(self, item_count: int) -> float:
        delay = self.seconds_per_item * max(item_count, 0)
        if self.max_seconds is not None:
            delay = min(delay, self.max_seconds)
        return delay

    def wait(self, item_count: int) -> float:
        delay = self.delay_for(item_count)
        if delay > 0:
            logger.info(f"Waiting {delay:.1f}s for {item_count} cart price updates to settle")
            self._sleep(delay)
        return delay


# =============================================================================
# RECONCILER
# =============================================================================

class CartPriceReconciler:
    """Sends one batched cart price update per cart mutation."""

    def __init__(
        self,
        http_client: WebhookClient,
        url: str,
        store_hash: str = "",
        auth_token: str = "",
        settling_policy: Optional[SettlingPolicy] = None
    ):
        self._http = http_client
        self._url = url
        self._store_hash = store_hash
        self._auth_token = auth_token
        self.settling_policy = settling_policy or FixedPerItemSettlingPolicy()

    @property
    def is_configured(self) -> bool:
        return bool(self._url)

    def build_request(self, cart_id: str, records: Sequence[ReconciliationRecord]) -> Dict[str, Any]:
        return {
            "action": UPDATE_CART_PRICES_ACTION,
            "cart_id": cart_id,
            "cart_items": [record.to_payload() for record in records],
            "store_hash": self._store_hash,
            "auth_token": self._auth_token,
            "total_items": len(records),
        }

    def reconcile(
        self,
        cart_id: str,
        matched_pairs: Sequence[MatchedPair],
        prices: Optional[Dict[int, Decimal]] = None
    ) -> CartPriceSettlement:
        """
        Submit matched lines and wait for the backend to settle.

        Args:
            cart_id: Storefront cart id
            matched_pairs: Output of CartLineMatcher.match()
            prices: Optional resolved unit price per pair index

        Returns:
            CartPriceSettlement (empty, no request sent, if nothing matched)

        Raises:
            ReconciliationError: On transport error or non-2xx response
        """
        if not matched_pairs:
            logger.debug(f"No matched cart lines for cart {cart_id}, skipping reconciliation")
            return CartPriceSettlement(cart_id=cart_id)

        if not self._url:
            raise ReconciliationError("CART_PRICE_SYNC_URL is not configured")

        prices = prices or {}
        records = [
            ReconciliationRecord.from_pair(pair, prices.get(index))
            for index, pair in enumerate(matched_pairs)
        ]
        payload = self.build_request(cart_id, records)

        logger.info(f"Submitting {len(records)} cart price updates for cart {cart_id}")
        try:
            response = self._http.post_json(self._url, payload, error_cls=ReconciliationError)
        except ReconciliationError as e:
            logger.error(f"Cart price update failed for cart {cart_id}: {e}")
            raise

        waited = self.settling_policy.wait(len(records))
        return CartPriceSettlement(
            cart_id=cart_id,
            records=records,
            settle_seconds=waited,
            response=response,
        )


# =============================================================================
# CALL SITE
# =============================================================================

@dataclass
class CartSyncOutcome:
    """Everything the cart sync call site learned, success or not."""

    cart_id: str
    match: MatchResult = field(default_factory=MatchResult)
    settlement: Optional[CartPriceSettlement] = None
    error: Optional[str] = None

    @property
    def reconciled(self) -> bool:
        return self.settlement is not None and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "cart_id": self.cart_id,
            "reconciled": self.reconciled,
            **self.match.to_dict(),
        }
        if self.settlement is not None:
            data["settlement"] = self.settlement.to_dict()
        if self.error:
            data["error"] = self.error
        return data


class CartSyncService:
    """
    Reads, matches and reconciles one cart after it was mutated.

    Never raises for remote failures: the cart mutation that triggered the
    sync has already been committed, so failures are logged and reported
    in the returned CartSyncOutcome.
    """

    def __init__(
        self,
        storefront: StorefrontClient,
        matcher: CartLineMatcher,
        reconciler: CartPriceReconciler
    ):
        self._storefront = storefront
        self._matcher = matcher
        self._reconciler = reconciler

    def sync(
        self,
        cart_id: str,
        items: Sequence[LineItem],
        prices: Optional[Dict[int, Decimal]] = None
    ) -> CartSyncOutcome:
        """
        Args:
            cart_id: Storefront cart id
            items: Logical items that were added to the cart
            prices: Optional resolved unit price keyed by index into ``items``
        """
        outcome = CartSyncOutcome(cart_id=cart_id)

        try:
            cart_lines = self._storefront.get_cart_lines(cart_id)
        except RemoteServiceError as e:
            logger.error(f"Could not read cart {cart_id}: {e}")
            outcome.error = e.message
            outcome.match = MatchResult(unmatched_items=list(items))
            return outcome

        if not cart_lines:
            logger.warning(f"No line items found in cart {cart_id}")
            outcome.match = MatchResult(unmatched_items=list(items))
            return outcome

        outcome.match = self._matcher.match(items, cart_lines)
        if outcome.match.unmatched_items:
            logger.warning(
                f"{len(outcome.match.unmatched_items)} of {len(items)} items "
                f"not matched in cart {cart_id}"
            )

        # Re-key prices from item index to matched pair index
        pair_prices: Dict[int, Decimal] = {}
        if prices:
            positions = {id(item): index for index, item in enumerate(items)}
            for pair_index, pair in enumerate(outcome.match.matched_pairs):
                price = prices.get(positions.get(id(pair.item), -1))
                if price is not None:
                    pair_prices[pair_index] = price

        try:
            outcome.settlement = self._reconciler.reconcile(
                cart_id, outcome.match.matched_pairs, pair_prices
            )
        except RemoteServiceError as e:
            logger.error(f"Cart price reconciliation failed for cart {cart_id}: {e}")
            outcome.error = e.message

        return outcome
