"""
Matching logical line items to persisted cart lines.

After items are added to the storefront cart, the cart price webhook needs
the cart's own line ids. The storefront does not echo them back, so each
logical item is matched against the cart's lines with an ordered chain of
strategies; the first strategy that finds a free line wins.

Strategy chain:
    1. product_variant  - same product id and variant id
    2. single_line      - the cart holds exactly one line
    3. sku              - same (non-empty) sku
    4. product_only     - same product id, variant ignored

Each cart line is consumed at most once, so a batch with duplicate SKUs
never maps two items onto the same line. Items that exhaust the chain are
reported in MatchResult.unmatched_items and left out of reconciliation.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Set, Tuple

from models.cart import CartLine, MatchedPair, MatchResult, normalize_id
from models.pricing import LineItem
from logging_config import get_logger


logger = get_logger(__name__)

# (item, cart_lines, free line indexes) -> index of the chosen line or None
MatchStrategy = Callable[[LineItem, Sequence[CartLine], List[int]], Optional[int]]


def match_product_variant(item: LineItem, lines: Sequence[CartLine], free: List[int]) -> Optional[int]:
    product_id = normalize_id(item.product_id)
    variant_id = normalize_id(item.variant_id)
    if not product_id or not variant_id:
        return None
    for index in free:
        line = lines[index]
        if line.product_id == product_id and line.variant_id == variant_id:
            return index
    return None


def match_single_line(item: LineItem, lines: Sequence[CartLine], free: List[int]) -> Optional[int]:
    # Cart has exactly one line in total; identifiers are not compared
    if len(lines) == 1 and free == [0]:
        return 0
    return None


def match_sku(item: LineItem, lines: Sequence[CartLine], free: List[int]) -> Optional[int]:
    if not item.sku:
        return None
    for index in free:
        if lines[index].sku == item.sku:
            return index
    return None


def match_product_only(item: LineItem, lines: Sequence[CartLine], free: List[int]) -> Optional[int]:
    product_id = normalize_id(item.product_id)
    if not product_id:
        return None
    for index in free:
        if lines[index].product_id == product_id:
            return index
    return None


DEFAULT_STRATEGIES: Tuple[Tuple[str, MatchStrategy], ...] = (
    ("product_variant", match_product_variant),
    ("single_line", match_single_line),
    ("sku", match_sku),
    ("product_only", match_product_only),
)


class CartLineMatcher:
    """Matches logical items to cart lines with a first-match-wins chain."""

    def __init__(self, strategies: Sequence[Tuple[str, MatchStrategy]] = DEFAULT_STRATEGIES):
        self._strategies = tuple(strategies)

    def match(self, logical_items: Sequence[LineItem], cart_lines: Sequence[CartLine]) -> MatchResult:
        """
        Match every logical item to at most one cart line.

        Args:
            logical_items: Items the caller just added/re-ordered
            cart_lines: Lines currently persisted in the cart

        Returns:
            MatchResult with matched pairs (input order) and unmatched items
        """
        result = MatchResult()
        consumed: Set[int] = set()

        for item in logical_items:
            free = [i for i in range(len(cart_lines)) if i not in consumed]
            pair = None

            for name, strategy in self._strategies:
                index = strategy(item, cart_lines, free)
                if index is not None:
                    consumed.add(index)
                    pair = MatchedPair(item=item, cart_line=cart_lines[index], strategy=name)
                    break

            if pair is None:
                logger.warning(
                    f"No matching cart line for product={item.product_id} "
                    f"variant={item.variant_id} sku={item.sku}"
                )
                result.unmatched_items.append(item)
            else:
                result.matched_pairs.append(pair)

        return result
