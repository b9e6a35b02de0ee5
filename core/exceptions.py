"""
Custom exceptions for the cart pricing service.

Exception Hierarchy:
    CartPricingError (base)
    ├── ConfigurationError       - Required endpoint/setting missing (startup failure)
    ├── InvalidLineItemError     - Caller passed an unusable line item (caller error)
    ├── DocumentRewriteError     - Invoice PDF could not be stamped (always absorbed)
    └── RemoteServiceError       - Remote call failed (network, non-2xx, bad body)
        ├── PricingSourceError   - ERP pricing webhook
        ├── ReconciliationError  - Cart price update webhook
        ├── OrderLookupError     - External order number lookup
        └── StorefrontError      - Storefront / B2B GraphQL reads

Usage:
    Startup errors (ConfigurationError) cause the app to fail fast.
    Pricing paths absorb RemoteServiceError and fall back to catalog pricing.
    ReconciliationError is raised to the cart sync call site, which logs it.
"""

from typing import Optional, Dict, Any


class CartPricingError(Exception):
    """
    Base exception for all cart pricing errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# STARTUP ERRORS - Application will not start if these occur
# =============================================================================

class ConfigurationError(CartPricingError):
    """
    A required configuration value is missing or malformed.

    Typical causes:
    - ERP_PRICING_URL / CART_PRICE_SYNC_URL not set in .env
    - Non-numeric timeout or TTL values
    """

    def __init__(self, setting: str, reason: str = "is not configured"):
        message = f"Setting {setting} {reason}"
        details = {
            "setting": setting,
            "resolution": f"Set {setting} in the environment or .env file"
        }
        super().__init__(message, details)
        self.setting = setting


# =============================================================================
# CALLER ERRORS
# =============================================================================

class InvalidLineItemError(CartPricingError):
    """
    A line item cannot be priced as supplied.

    Quantity must be a positive integer and catalog prices must be numeric.
    This is a caller error, not a remote failure - it is never absorbed
    into the catalog fallback.
    """

    def __init__(self, message: str, product_id: Any = None, sku: str = ""):
        details = {}
        if product_id is not None:
            details["product_id"] = product_id
        if sku:
            details["sku"] = sku
        super().__init__(message, details)
        self.product_id = product_id
        self.sku = sku


# =============================================================================
# RUNTIME ERRORS - Operation fails, caller decides how to degrade
# =============================================================================

class RemoteServiceError(CartPricingError):
    """
    Base class for failures talking to a remote webhook or GraphQL endpoint.

    Covers transport errors (connection refused, timeout), non-2xx statuses
    and bodies that are not valid JSON.
    """

    service = "remote"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        error_details["service"] = self.service
        if status_code is not None:
            error_details["status_code"] = status_code
        if body:
            error_details["body"] = body[:500]
        super().__init__(message, error_details)
        self.status_code = status_code
        self.body = body


class PricingSourceError(RemoteServiceError):
    """ERP pricing webhook call failed."""

    service = "erp_pricing"


class ReconciliationError(RemoteServiceError):
    """
    Cart price update webhook rejected the batch.

    The cart mutation itself already succeeded when this is raised, so the
    cart sync call site logs it and carries on.
    """

    service = "cart_price_sync"


class OrderLookupError(RemoteServiceError):
    """External order number lookup failed."""

    service = "order_lookup"


class StorefrontError(RemoteServiceError):
    """Storefront or B2B GraphQL read failed."""

    service = "storefront"


class DocumentRewriteError(CartPricingError):
    """
    Invoice PDF could not be redacted and stamped.

    Raised inside the rewriter only; the public rewrite() always returns the
    original document instead of propagating this.
    """

    def __init__(self, message: str, order_id: Optional[str] = None):
        details = {"order_id": order_id} if order_id else {}
        super().__init__(message, details)
        self.order_id = order_id
