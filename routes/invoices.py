"""
Order and invoice routes.

Handles:
- /api/orders/<order_id>/external-id - ERP order number for a storefront order
- /api/invoices/<order_id>/pdf - Invoice PDF with the ERP order number stamped in
- /api/invoices/<order_id>/html - Printable HTML invoice with the ERP order number
"""

import io

from flask import Blueprint, Response, current_app, request, send_file

from core.exceptions import RemoteServiceError
from logging_config import get_logger

from .validation import json_body, parse_pdf_url, sanitize_id


# Module logger
logger = get_logger(__name__)

invoices_bp = Blueprint("invoices", __name__)


@invoices_bp.route("/api/orders/<order_id>/external-id", methods=["GET"])
def external_order_id(order_id: str):
    order_id = sanitize_id(order_id)
    resolver = current_app.config["ORDER_RESOLVER"]
    mapping = resolver.resolve_mapping(order_id)
    return mapping.to_dict()


@invoices_bp.route("/api/invoices/<order_id>/pdf", methods=["POST"])
def invoice_pdf(order_id: str):
    """
    Fetch the invoice PDF from ``pdf_url`` and return it rewritten.

    ``pdf_url`` must point at one of INVOICE_PDF_HOSTS.

    The storefront PDF is returned unchanged when the order has no ERP
    number or the PDF cannot be rewritten.
    """
    order_id = sanitize_id(order_id)
    pdf_url = parse_pdf_url(json_body(), current_app.config["INVOICE_PDF_HOSTS"])

    invoice_service = current_app.config["INVOICE_SERVICE"]
    try:
        invoice = invoice_service.pdf_invoice(order_id, pdf_url)
    except RemoteServiceError as e:
        return {"error": e.message, "service": e.service}, 502

    response = send_file(
        io.BytesIO(invoice.content),
        mimetype="application/pdf",
        download_name=f"invoice-{invoice.external_order_id or order_id}.pdf",
    )
    response.headers["X-Order-Id"] = invoice.external_order_id or order_id
    return response


@invoices_bp.route("/api/invoices/<order_id>/html", methods=["POST"])
def invoice_html(order_id: str):
    order_id = sanitize_id(order_id)
    html = request.get_data(as_text=True)
    if not html:
        return {"error": "HTML body is required"}, 400

    invoice_service = current_app.config["INVOICE_SERVICE"]
    rewritten = invoice_service.html_invoice(order_id, html)
    return Response(rewritten, mimetype="text/html")
