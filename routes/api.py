"""
Operational routes.

Handles:
- /health - Health check endpoint
"""

from flask import Blueprint, current_app

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)

# Pricing degrades to catalog prices without ERP_PRICING_URL; the others disable features
REQUIRED_ENDPOINTS = ("ERP_PRICING_URL",)
OPTIONAL_ENDPOINTS = (
    "ORDER_LOOKUP_URL",
    "CART_PRICE_SYNC_URL",
    "STOREFRONT_GRAPHQL_URL",
    "B2B_GRAPHQL_URL",
)


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    for setting in REQUIRED_ENDPOINTS + OPTIONAL_ENDPOINTS:
        configured = bool(current_app.config.get(setting))
        health_status["checks"][setting.lower()] = "configured" if configured else "not_configured"
        if not configured and setting in REQUIRED_ENDPOINTS:
            health_status["status"] = "degraded"

    price_cache = current_app.config.get("PRICE_CACHE")
    if price_cache is not None:
        health_status["checks"]["price_cache_entries"] = len(price_cache)

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
