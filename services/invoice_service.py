"""
Invoice documents with the ERP order number.

Fetches the storefront invoice (PDF or HTML), looks up the ERP order
number and rewrites the document. When there is no ERP number the
storefront document is returned as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import MutableMapping, Optional

from core.exceptions import RemoteServiceError, StorefrontError
from core.http_client import WebhookClient
from modules.document_rewriter import DocumentIdentifierRewriter
from modules.invoice_html import replace_order_id_in_html
from logging_config import get_logger

from .order_identifier import OrderIdentifierResolver


logger = get_logger(__name__)


@dataclass
class InvoiceDocument:
    """A (possibly rewritten) invoice and the ids involved."""

    order_id: str
    external_order_id: Optional[str]
    content: bytes
    rewritten: bool = False


class InvoiceService:
    """Invoice fetch + order id rewrite."""

    def __init__(
        self,
        http_client: WebhookClient,
        order_resolver: OrderIdentifierResolver,
        rewriter: Optional[DocumentIdentifierRewriter] = None
    ):
        self._http = http_client
        self._orders = order_resolver
        self._rewriter = rewriter or DocumentIdentifierRewriter()

    def fetch_pdf(self, pdf_url: str) -> bytes:
        """
        Download an invoice PDF.

        Raises:
            StorefrontError: If the download fails or the body is empty
        """
        if not pdf_url:
            raise StorefrontError("Invoice PDF URL is required")
        return self._http.get_bytes(pdf_url, error_cls=StorefrontError)

    def pdf_invoice(
        self,
        order_id: str,
        pdf_url: str,
        known_mappings: Optional[MutableMapping[str, Optional[str]]] = None
    ) -> InvoiceDocument:
        """
        Fetch the invoice PDF and stamp the ERP order number on it.

        Raises:
            RemoteServiceError: If the PDF cannot be fetched
        """
        external_id = self._orders.resolve_external_order_id(order_id, known_mappings)

        try:
            document = self.fetch_pdf(pdf_url)
        except RemoteServiceError as e:
            logger.error(f"Failed to fetch invoice PDF for order {order_id}: {e}")
            raise

        rewritten = self._rewriter.rewrite(document, order_id, external_id)
        if external_id and rewritten is document:
            logger.warning(f"Invoice PDF for order {order_id} kept the storefront order id")

        return InvoiceDocument(
            order_id=order_id,
            external_order_id=external_id,
            content=rewritten,
            rewritten=rewritten is not document,
        )

    def html_invoice(
        self,
        order_id: str,
        html: str,
        known_mappings: Optional[MutableMapping[str, Optional[str]]] = None
    ) -> str:
        """Rewrite an HTML invoice; returns it unchanged without an ERP number."""
        external_id = self._orders.resolve_external_order_id(order_id, known_mappings)
        return replace_order_id_in_html(html, order_id, external_id)
