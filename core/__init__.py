"""
Core module for the cart pricing service.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- http_client: Shared HTTP transport for webhooks and GraphQL endpoints
"""

from .exceptions import (
    CartPricingError,
    ConfigurationError,
    InvalidLineItemError,
    RemoteServiceError,
    PricingSourceError,
    ReconciliationError,
    OrderLookupError,
    StorefrontError,
    DocumentRewriteError,
)
from .http_client import WebhookClient

__all__ = [
    "CartPricingError",
    "ConfigurationError",
    "InvalidLineItemError",
    "RemoteServiceError",
    "PricingSourceError",
    "ReconciliationError",
    "OrderLookupError",
    "StorefrontError",
    "DocumentRewriteError",
    "WebhookClient",
]
