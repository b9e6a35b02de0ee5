"""Unit tests for invoice fetch + rewrite."""

from unittest.mock import MagicMock

import pytest

from core.exceptions import StorefrontError
from services.invoice_service import InvoiceService


@pytest.fixture
def order_resolver():
    return MagicMock()


@pytest.fixture
def rewriter():
    return MagicMock()


@pytest.fixture
def service(http_client, order_resolver, rewriter):
    return InvoiceService(http_client, order_resolver, rewriter)


class TestInvoiceService:
    """Test PDF and HTML invoice flows."""

    def test_pdf_rewritten(self, service, http_client, order_resolver, rewriter):
        http_client.get_bytes.return_value = b"original"
        order_resolver.resolve_external_order_id.return_value = "491655"
        rewriter.rewrite.return_value = b"rewritten"

        invoice = service.pdf_invoice("1869", "http://store.test/invoice.pdf")

        rewriter.rewrite.assert_called_once_with(b"original", "1869", "491655")
        assert invoice.content == b"rewritten"
        assert invoice.rewritten
        assert invoice.external_order_id == "491655"

    def test_pdf_without_erp_number(self, service, http_client, order_resolver, rewriter):
        original = b"original"
        http_client.get_bytes.return_value = original
        order_resolver.resolve_external_order_id.return_value = None
        rewriter.rewrite.side_effect = lambda doc, local, external: doc

        invoice = service.pdf_invoice("1869", "http://store.test/invoice.pdf")

        assert invoice.content is original
        assert not invoice.rewritten

    def test_fetch_failure_raises(self, service, http_client, order_resolver):
        order_resolver.resolve_external_order_id.return_value = "491655"
        http_client.get_bytes.side_effect = StorefrontError("HTTP 404", status_code=404)

        with pytest.raises(StorefrontError):
            service.pdf_invoice("1869", "http://store.test/invoice.pdf")

    def test_missing_url_raises(self, service, http_client):
        with pytest.raises(StorefrontError):
            service.fetch_pdf("")
        http_client.get_bytes.assert_not_called()

    def test_html_invoice(self, service, order_resolver):
        order_resolver.resolve_external_order_id.return_value = "491655"

        html = service.html_invoice("1869", "<h1>Invoice for Order #1869</h1>")

        assert html == "<h1>Invoice for Order #491655</h1>"
