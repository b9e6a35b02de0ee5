"""
Configuration for the cart pricing service.

Endpoint URLs and secrets come from the environment (or a .env file next
to this module). Pricing works without any of the webhook URLs - it simply
degrades to catalog prices - but cart sync and order lookups are disabled
until their URLs are set.
"""

import os
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

# Load .env early so environment variables are available for Config class
load_dotenv(override=True)

BASE_DIR = Path(__file__).resolve().parent


def _env_float(name: str, default: str) -> float:
    return float(os.environ.get(name, default))


def _env_optional_float(name: str):
    value = os.environ.get(name, "").strip()
    return float(value) if value else None


def _env_hosts(name: str, *fallback_urls: str) -> tuple:
    """Comma-separated host list, or the hosts of ``fallback_urls`` when unset."""
    value = os.environ.get(name, "").strip()
    if value:
        return tuple(host.strip().lower() for host in value.split(",") if host.strip())
    return tuple(
        urlparse(url).hostname for url in fallback_urls if url and urlparse(url).hostname
    )


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # invoice HTML / PDF bodies

    # ==========================================================================
    # Remote endpoints
    # ==========================================================================
    ERP_PRICING_URL = os.environ.get("ERP_PRICING_URL", "")
    ORDER_LOOKUP_URL = os.environ.get("ORDER_LOOKUP_URL", "")
    CART_PRICE_SYNC_URL = os.environ.get("CART_PRICE_SYNC_URL", "")
    STOREFRONT_GRAPHQL_URL = os.environ.get("STOREFRONT_GRAPHQL_URL", "")
    STOREFRONT_TOKEN = os.environ.get("STOREFRONT_TOKEN", "")
    B2B_GRAPHQL_URL = os.environ.get("B2B_GRAPHQL_URL", "")
    B2B_TOKEN = os.environ.get("B2B_TOKEN", "")

    STORE_HASH = os.environ.get("STORE_HASH", "")
    WEBHOOK_AUTH_TOKEN = os.environ.get("WEBHOOK_AUTH_TOKEN", "")

    # Every outbound request carries this timeout; there are no retries
    HTTP_TIMEOUT_SECONDS = _env_float("HTTP_TIMEOUT_SECONDS", "10")

    # ==========================================================================
    # Pricing
    # ==========================================================================
    PRICE_CACHE_TTL_SECONDS = _env_float("PRICE_CACHE_TTL_SECONDS", "300")
    PRICING_MAX_WORKERS = int(os.environ.get("PRICING_MAX_WORKERS", "8"))
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")
    SHOW_INCLUSIVE_TAX_PRICE = os.environ.get("SHOW_INCLUSIVE_TAX_PRICE", "0") == "1"

    # ==========================================================================
    # Cart reconciliation
    # ==========================================================================
    # Wait this long per submitted line before trusting cart prices.
    # 5 lines = 10s, 20 lines = 40s. Set CART_SETTLE_MAX_SECONDS to cap it.
    CART_SETTLE_SECONDS_PER_ITEM = _env_float("CART_SETTLE_SECONDS_PER_ITEM", "2")
    CART_SETTLE_MAX_SECONDS = _env_optional_float("CART_SETTLE_MAX_SECONDS")

    # ==========================================================================
    # Invoices
    # ==========================================================================
    # Hosts the PDF invoice route may fetch from. Defaults to the storefront
    # GraphQL host; with neither set, every pdf_url is refused.
    INVOICE_PDF_HOSTS = _env_hosts("INVOICE_PDF_HOSTS", STOREFRONT_GRAPHQL_URL)


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    ENVIRONMENT = "production"


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration - no real endpoints, no settling wait."""
    DEBUG = False
    TESTING = True
    ENVIRONMENT = "testing"
    ERP_PRICING_URL = "http://erp.test/pricing"
    ORDER_LOOKUP_URL = "http://erp.test/order-id"
    CART_PRICE_SYNC_URL = "http://erp.test/cart-prices"
    STOREFRONT_GRAPHQL_URL = "http://store.test/graphql"
    B2B_GRAPHQL_URL = "http://b2b.test/graphql"
    INVOICE_PDF_HOSTS = ("store.test",)
    STORE_HASH = "teststore"
    WEBHOOK_AUTH_TOKEN = "test-token"
    CART_SETTLE_SECONDS_PER_ITEM = 0.0
    CART_SETTLE_MAX_SECONDS = None
