"""
Cart pricing service - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration and sets up logging
2. Builds the shared HTTP client, caches and services
3. Registers route blueprints
4. Sets up JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling
    └── Cleanup on shutdown (pool shutdown, HTTP session close)

    Pricing pool (Pricing_N workers)
    └── One ERP lookup per line item, shared WebhookClient and PriceCache

All services are stored in app.config so routes (and tests) can reach or
replace them.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.exceptions import CartPricingError, ConfigurationError, InvalidLineItemError
from core.http_client import WebhookClient
from services import (
    CartLineMatcher,
    CartPriceReconciler,
    CartSyncService,
    CatalogPriceFallback,
    ErpPricingClient,
    FixedPerItemSettlingPolicy,
    InvoiceService,
    OrderIdentifierResolver,
    PriceAggregator,
    PriceCache,
    PricingResolver,
    ProductShowPriceCache,
    StorefrontClient,
)
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In a frozen bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def _validate_config(app: Flask) -> None:
    """
    Fail fast on settings that would break every request.

    Raises:
        ConfigurationError: If a numeric setting is out of range
    """
    if app.config["HTTP_TIMEOUT_SECONDS"] <= 0:
        raise ConfigurationError("HTTP_TIMEOUT_SECONDS", "must be positive")
    if app.config["PRICE_CACHE_TTL_SECONDS"] <= 0:
        raise ConfigurationError("PRICE_CACHE_TTL_SECONDS", "must be positive")
    if app.config["PRICING_MAX_WORKERS"] < 1:
        raise ConfigurationError("PRICING_MAX_WORKERS", "must be at least 1")
    if app.config["CART_SETTLE_SECONDS_PER_ITEM"] < 0:
        raise ConfigurationError("CART_SETTLE_SECONDS_PER_ITEM", "must not be negative")

    if not app.config.get("ERP_PRICING_URL"):
        logger.warning("ERP_PRICING_URL not set - all prices will come from the catalog")
    if not app.config.get("CART_PRICE_SYNC_URL"):
        logger.warning("CART_PRICE_SYNC_URL not set - cart prices will not be reconciled")


def create_app(config_object: str = "config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the configuration class

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If a setting is invalid
    """
    # Load .env from base path (next to executable in production)
    # Use override=True so .env file always takes precedence over shell environment
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting cart pricing service in {app.config.get('ENVIRONMENT')} mode")

    _validate_config(app)

    # =========================================================================
    # SHARED INFRASTRUCTURE
    # =========================================================================

    http_client = WebhookClient(timeout_seconds=app.config["HTTP_TIMEOUT_SECONDS"])
    price_cache = PriceCache(ttl_seconds=app.config["PRICE_CACHE_TTL_SECONDS"])

    storefront = StorefrontClient(
        http_client,
        storefront_url=app.config["STOREFRONT_GRAPHQL_URL"],
        b2b_url=app.config["B2B_GRAPHQL_URL"],
        storefront_token=app.config["STOREFRONT_TOKEN"],
        b2b_token=app.config["B2B_TOKEN"],
    )

    app.config["HTTP_CLIENT"] = http_client
    app.config["PRICE_CACHE"] = price_cache
    app.config["STOREFRONT_CLIENT"] = storefront

    # =========================================================================
    # PRICING
    # =========================================================================

    resolver = PricingResolver(
        pricing_client=ErpPricingClient(http_client, app.config["ERP_PRICING_URL"]),
        cache=price_cache,
        fallback=CatalogPriceFallback(
            show_inclusive_tax_price=app.config["SHOW_INCLUSIVE_TAX_PRICE"],
            currency=app.config["DEFAULT_CURRENCY"],
        ),
    )
    aggregator = PriceAggregator(
        resolver,
        max_workers=app.config["PRICING_MAX_WORKERS"],
        default_currency=app.config["DEFAULT_CURRENCY"],
    )

    app.config["PRICING_RESOLVER"] = resolver
    app.config["PRICE_AGGREGATOR"] = aggregator
    app.config["SHOW_PRICE_CACHE"] = ProductShowPriceCache(storefront)
    logger.info(f"Pricing initialized ({app.config['PRICING_MAX_WORKERS']} workers)")

    # =========================================================================
    # CART RECONCILIATION
    # =========================================================================

    reconciler = CartPriceReconciler(
        http_client,
        url=app.config["CART_PRICE_SYNC_URL"],
        store_hash=app.config["STORE_HASH"],
        auth_token=app.config["WEBHOOK_AUTH_TOKEN"],
        settling_policy=FixedPerItemSettlingPolicy(
            seconds_per_item=app.config["CART_SETTLE_SECONDS_PER_ITEM"],
            max_seconds=app.config["CART_SETTLE_MAX_SECONDS"],
        ),
    )
    app.config["CART_SYNC_SERVICE"] = CartSyncService(storefront, CartLineMatcher(), reconciler)

    # =========================================================================
    # ORDERS / INVOICES
    # =========================================================================

    order_resolver = OrderIdentifierResolver(http_client, app.config["ORDER_LOOKUP_URL"])
    app.config["ORDER_RESOLVER"] = order_resolver
    app.config["INVOICE_SERVICE"] = InvoiceService(http_client, order_resolver)

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        aggregator.shutdown(wait=False)
        http_client.close()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(InvalidLineItemError)
    def handle_invalid_item(e):
        logger.info(f"Rejected request: {e}")
        return {"error": e.message, "details": e.details}, 400

    @app.errorhandler(CartPricingError)
    def handle_service_error(e):
        logger.error(f"Unhandled service error: {e}", exc_info=True)
        return {"error": e.message}, 500

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024) / (1024 * 1024)
        return {"error": f"Request too large. Maximum size is {max_mb:.0f} MB."}, 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {"error": e.description or e.name}, e.code

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "An unexpected error occurred."}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
