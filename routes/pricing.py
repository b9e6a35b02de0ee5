"""
Pricing routes.

Handles:
- /api/pricing/resolve - Unit price for one line item
- /api/pricing/aggregate - Subtotal/total for a batch of line items
- /api/pricing/cache - Drop cached ERP prices and show_price flags
- /api/products/<id>/show-price - Whether a product's price is public

The pricing context is either sent explicitly as ``context`` or derived
from ``user_id`` + ``is_privileged`` via the company extra fields.
"""

from flask import Blueprint, current_app

from models.pricing import PricingContext
from services.company_fields import CompanyFieldResolver, providers_for
from logging_config import get_logger

from .validation import json_body, parse_context, parse_item, parse_items, sanitize_id


# Module logger
logger = get_logger(__name__)

pricing_bp = Blueprint("pricing", __name__)


def _resolve_context(data) -> PricingContext:
    """Explicit context wins; otherwise look up the user's company."""
    if "context" in data:
        return parse_context(data.get("context"))

    is_privileged = bool(data.get("is_privileged", False))
    user_id = data.get("user_id")
    if not is_privileged:
        return PricingContext(customer_id=None, group_code=None, is_privileged=False)

    try:
        user_id = int(user_id) if user_id not in (None, "") else None
    except (TypeError, ValueError):
        user_id = None

    resolver = CompanyFieldResolver(
        providers_for(current_app.config["STOREFRONT_CLIENT"], data.get("customer_data"))
    )
    return resolver.build_context(user_id, is_privileged=True)


@pricing_bp.route("/api/pricing/resolve", methods=["POST"])
def resolve_price():
    """Resolve one item; ERP problems come back as a fallback price, never an error."""
    data = json_body()
    item = parse_item(data.get("item"))
    context = _resolve_context(data)

    resolver = current_app.config["PRICING_RESOLVER"]
    price = resolver.resolve(context, item)

    return {"item": item.to_dict(), **price.to_dict()}


@pricing_bp.route("/api/pricing/aggregate", methods=["POST"])
def aggregate_prices():
    data = json_body()
    items = parse_items(data.get("items"))
    context = _resolve_context(data)

    aggregator = current_app.config["PRICE_AGGREGATOR"]
    aggregate = aggregator.aggregate(context, items)

    if aggregate.is_fully_degraded and context.is_privileged:
        logger.warning(f"All {len(items)} items priced from catalog for a privileged caller")

    return aggregate.to_dict()


@pricing_bp.route("/api/pricing/cache", methods=["DELETE"])
def clear_caches():
    price_cache = current_app.config["PRICE_CACHE"]
    show_price_cache = current_app.config["SHOW_PRICE_CACHE"]

    cleared = {
        "prices": price_cache.clear(),
        "show_price": show_price_cache.clear(),
    }
    logger.info(f"Caches cleared: {cleared}")
    return {"cleared": cleared}


@pricing_bp.route("/api/products/<product_id>/show-price", methods=["GET"])
def show_price(product_id: str):
    product_id = sanitize_id(product_id)
    show_price_cache = current_app.config["SHOW_PRICE_CACHE"]
    return {
        "product_id": product_id,
        "show_price": show_price_cache.is_enabled(product_id),
    }
