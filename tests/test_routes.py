"""
Route tests through the Flask test client.

Services in app.config are replaced with mocks per test.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app import create_app
from core.exceptions import StorefrontError
from models.cart import MatchResult
from models.order import OrderIdentifierMapping
from models.pricing import (
    ItemPrice,
    LineItem,
    PriceAggregate,
    PriceSource,
    ResolvedPrice,
)
from services.cart_reconciler import CartSyncOutcome
from services.invoice_service import InvoiceDocument, InvoiceService


@pytest.fixture
def app():
    app = create_app("config.TestingConfig")
    yield app
    app.config["PRICE_AGGREGATOR"].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


ITEM = {"product_id": 42, "sku": "SKU-42", "quantity": 2, "catalog_base_price": "25.00"}
CONTEXT = {"customer_id": "C100", "group_code": "GOLD", "is_privileged": True}


class TestPricingRoutes:
    """Test /api/pricing/* and show-price."""

    def test_resolve(self, app, client):
        resolver = MagicMock()
        resolver.resolve.return_value = ResolvedPrice(
            unit_price=Decimal("19.99"), currency="USD", source=PriceSource.REMOTE
        )
        app.config["PRICING_RESOLVER"] = resolver

        response = client.post("/api/pricing/resolve", json={"context": CONTEXT, "item": ITEM})

        assert response.status_code == 200
        data = response.get_json()
        assert data["unit_price"] == "19.99"
        assert data["source"] == "remote"
        context, item = resolver.resolve.call_args[0]
        assert context.customer_id == "C100"
        assert item.product_id == "42"

    def test_resolve_rejects_zero_quantity(self, client):
        response = client.post(
            "/api/pricing/resolve",
            json={"context": CONTEXT, "item": dict(ITEM, quantity=0)},
        )
        assert response.status_code == 400
        assert "Quantity" in response.get_json()["error"]

    def test_resolve_requires_json(self, client):
        response = client.post("/api/pricing/resolve", data="nope")
        assert response.status_code == 400

    def test_context_from_company_fields(self, app, client):
        storefront = MagicMock()
        storefront.get_company_extra_fields.return_value = [
            {"fieldName": "CustID", "fieldValue": "C7"},
            {"fieldName": "Epicor GroupCode", "fieldValue": "G7"},
        ]
        resolver = MagicMock()
        resolver.resolve.return_value = ResolvedPrice(unit_price=Decimal("1"))
        app.config["STOREFRONT_CLIENT"] = storefront
        app.config["PRICING_RESOLVER"] = resolver

        client.post("/api/pricing/resolve", json={"user_id": 5, "is_privileged": True, "item": ITEM})

        context = resolver.resolve.call_args[0][0]
        assert (context.customer_id, context.group_code) == ("C7", "G7")

    def test_aggregate(self, app, client):
        item = LineItem(product_id="42", sku="SKU-42", quantity=2)
        price = ResolvedPrice(unit_price=Decimal("19.99"), source=PriceSource.REMOTE)
        aggregator = MagicMock()
        aggregator.aggregate.return_value = PriceAggregate(
            total=Decimal("39.98"), currency="USD", items=[ItemPrice(item, price)]
        )
        app.config["PRICE_AGGREGATOR"] = aggregator

        response = client.post("/api/pricing/aggregate", json={"context": CONTEXT, "items": [ITEM]})

        data = response.get_json()
        assert data["total"] == "39.98"
        assert data["remote_count"] == 1
        assert data["items"][0]["line_total"] == "39.98"

    def test_show_price(self, app, client):
        flags = MagicMock()
        flags.is_enabled.return_value = True
        app.config["SHOW_PRICE_CACHE"] = flags

        response = client.get("/api/products/12/show-price")

        assert response.get_json() == {"product_id": "12", "show_price": True}

    def test_clear_caches(self, client):
        response = client.delete("/api/pricing/cache")
        assert response.get_json() == {"cleared": {"prices": 0, "show_price": 0}}


class TestCartRoutes:
    """Test /api/cart/<id>/sync."""

    def test_failed_reconciliation_is_200(self, app, client):
        sync_service = MagicMock()
        sync_service.sync.return_value = CartSyncOutcome(
            cart_id="cart-1", match=MatchResult(), error="HTTP 502"
        )
        app.config["CART_SYNC_SERVICE"] = sync_service

        response = client.post("/api/cart/cart-1/sync", json={"items": [ITEM], "prices": {"0": "19.99"}})

        assert response.status_code == 200
        data = response.get_json()
        assert data["reconciled"] is False
        assert data["error"] == "HTTP 502"
        cart_id, items, prices = sync_service.sync.call_args[0]
        assert cart_id == "cart-1"
        assert prices == {0: Decimal("19.99")}

    def test_prices_resolved_from_context(self, app, client):
        item = LineItem(product_id="42", sku="SKU-42", quantity=2)
        aggregator = MagicMock()
        aggregator.aggregate.return_value = PriceAggregate(
            total=Decimal("10"),
            items=[ItemPrice(item, ResolvedPrice(unit_price=Decimal("5"), source=PriceSource.REMOTE))],
        )
        sync_service = MagicMock()
        sync_service.sync.return_value = CartSyncOutcome(cart_id="cart-1")
        app.config["PRICE_AGGREGATOR"] = aggregator
        app.config["CART_SYNC_SERVICE"] = sync_service

        client.post("/api/cart/cart-1/sync", json={"items": [ITEM], "context": CONTEXT})

        assert sync_service.sync.call_args[0][2] == {0: Decimal("5")}

    def test_bad_price_index_rejected(self, client):
        response = client.post("/api/cart/cart-1/sync", json={"items": [ITEM], "prices": {"3": 1}})
        assert response.status_code == 400


class TestInvoiceRoutes:
    """Test order id and invoice endpoints."""

    def test_external_order_id(self, app, client):
        resolver = MagicMock()
        resolver.resolve_mapping.return_value = OrderIdentifierMapping("1869", "491655")
        app.config["ORDER_RESOLVER"] = resolver

        response = client.get("/api/orders/1869/external-id")

        assert response.get_json() == {"order_id": "1869", "external_order_id": "491655"}

    def test_invoice_pdf(self, app, client):
        invoice_service = MagicMock()
        invoice_service.pdf_invoice.return_value = InvoiceDocument(
            order_id="1869", external_order_id="491655", content=b"%PDF-rewritten", rewritten=True
        )
        app.config["INVOICE_SERVICE"] = invoice_service

        response = client.post(
            "/api/invoices/1869/pdf",
            json={"pdf_url": "https://store.test/invoice.pdf?order=1869&token=x"},
        )

        assert response.status_code == 200
        assert response.mimetype == "application/pdf"
        assert response.data == b"%PDF-rewritten"
        assert response.headers["X-Order-Id"] == "491655"
        invoice_service.pdf_invoice.assert_called_once_with(
            "1869", "https://store.test/invoice.pdf?order=1869&token=x"
        )

    @pytest.mark.parametrize("body", [{}, {"pdf_url": "file:///etc/passwd"}])
    def test_invoice_pdf_rejects_bad_url(self, client, body):
        response = client.post("/api/invoices/1869/pdf", json=body)
        assert response.status_code == 400

    @pytest.mark.parametrize("pdf_url", [
        "http://169.254.169.254/latest/meta-data/",
        "http://localhost:8080/admin",
        "https://store.test.evil.example/invoice.pdf",
        "https://store.test@evil.example/invoice.pdf",
    ])
    def test_invoice_pdf_rejects_other_hosts(self, app, client, pdf_url):
        invoice_service = MagicMock()
        app.config["INVOICE_SERVICE"] = invoice_service

        response = client.post("/api/invoices/1869/pdf", json={"pdf_url": pdf_url})

        assert response.status_code == 400
        assert "host is not allowed" in response.get_json()["error"]
        invoice_service.pdf_invoice.assert_not_called()

    def test_invoice_pdf_refused_without_allowed_hosts(self, app, client):
        invoice_service = MagicMock()
        app.config["INVOICE_SERVICE"] = invoice_service
        app.config["INVOICE_PDF_HOSTS"] = ()

        response = client.post("/api/invoices/1869/pdf", json={"pdf_url": "https://store.test/x.pdf"})

        assert response.status_code == 400
        invoice_service.pdf_invoice.assert_not_called()

    def test_invoice_pdf_host_match_ignores_case(self, app, client):
        invoice_service = MagicMock()
        invoice_service.pdf_invoice.return_value = InvoiceDocument(
            order_id="1869", external_order_id=None, content=b"%PDF", rewritten=False
        )
        app.config["INVOICE_SERVICE"] = invoice_service

        response = client.post("/api/invoices/1869/pdf", json={"pdf_url": "https://STORE.test/x.pdf"})

        assert response.status_code == 200

    def test_invoice_pdf_fetch_failure(self, app, client):
        invoice_service = MagicMock()
        invoice_service.pdf_invoice.side_effect = StorefrontError("HTTP 404", status_code=404)
        app.config["INVOICE_SERVICE"] = invoice_service

        response = client.post("/api/invoices/1869/pdf", json={"pdf_url": "https://store.test/x.pdf"})

        assert response.status_code == 502
        assert response.get_json()["service"] == "storefront"

    def test_invoice_html(self, app, client):
        resolver = MagicMock()
        resolver.resolve_external_order_id.return_value = "491655"
        app.config["INVOICE_SERVICE"] = InvoiceService(MagicMock(), resolver)

        response = client.post(
            "/api/invoices/1869/html",
            data="<h1>Order #1869</h1>",
            content_type="text/html",
        )

        assert response.mimetype == "text/html"
        assert response.get_data(as_text=True) == "<h1>Order #491655</h1>"


class TestApiRoutes:
    """Test health and error handling."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["checks"]["erp_pricing_url"] == "configured"

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert "error" in response.get_json()
