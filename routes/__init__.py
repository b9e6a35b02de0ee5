"""
Flask route blueprints for the cart pricing service.

This module contains all route handlers organized by functionality:
- pricing: Price resolution, aggregation, cache control, show_price flags
- cart: Cart price reconciliation after a cart mutation
- invoices: ERP order numbers and invoice rewriting
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .pricing import pricing_bp
from .cart import cart_bp
from .invoices import invoices_bp
from .api import api_bp

__all__ = [
    "pricing_bp",
    "cart_bp",
    "invoices_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(pricing_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(api_bp)
