"""Document helpers for invoice order id rewriting."""

__all__ = [
    "document_rewriter",
    "invoice_html",
]
