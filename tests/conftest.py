"""Shared fixtures for the cart pricing tests."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from core.http_client import WebhookClient
from models.pricing import LineItem, PricingContext


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def http_client():
    """WebhookClient stand-in; tests set post_json/get_json behaviour."""
    return MagicMock(spec=WebhookClient)


@pytest.fixture
def full_context():
    return PricingContext(customer_id="C100", group_code="GOLD", is_privileged=True)


@pytest.fixture
def guest_context():
    return PricingContext(customer_id=None, group_code=None, is_privileged=False)


@pytest.fixture
def sample_item():
    return LineItem(
        product_id="42",
        sku="SKU-42",
        quantity=2,
        catalog_base_price=Decimal("25.00"),
        catalog_tax_price=Decimal("2.50"),
    )


def valid_pricing_body(net_price=19.99, currency="USD"):
    """ERP webhook response for a valid price."""
    return [{
        "success": True,
        "pricing": {
            "success": True,
            "netPrice": net_price,
            "basePrice": 24.99,
            "currency": currency,
            "discount": 5.0,
            "valid": True,
            "error": None,
        },
    }]
