"""
Cart routes.

Handles:
- /api/cart/<cart_id>/sync - Push resolved prices into a cart after it was mutated

The storefront has already committed the cart change when this is called,
so a failed reconciliation is reported in the body (``reconciled: false``)
with HTTP 200 rather than as an error.
"""

from flask import Blueprint, current_app

from logging_config import get_logger

from .validation import json_body, parse_context, parse_items, parse_prices, sanitize_id


# Module logger
logger = get_logger(__name__)

cart_bp = Blueprint("cart", __name__)


@cart_bp.route("/api/cart/<cart_id>/sync", methods=["POST"])
def sync_cart(cart_id: str):
    """
    Match the added items to cart lines and update their prices.

    Body:
        items: Line items that were added to the cart
        prices: Optional ``{item index: unit price}``
        context: Optional pricing context; when given and ``prices`` is
            omitted, the items are priced first
    """
    cart_id = sanitize_id(cart_id)
    data = json_body()
    items = parse_items(data.get("items"))
    prices = parse_prices(data.get("prices"), len(items))

    if not prices and data.get("context"):
        context = parse_context(data.get("context"))
        aggregate = current_app.config["PRICE_AGGREGATOR"].aggregate(context, items)
        prices = {index: entry.price.unit_price for index, entry in enumerate(aggregate.items)}

    sync_service = current_app.config["CART_SYNC_SERVICE"]
    outcome = sync_service.sync(cart_id, items, prices)

    if not outcome.reconciled:
        logger.warning(f"Cart {cart_id} prices not reconciled: {outcome.error or 'nothing matched'}")

    return outcome.to_dict()
