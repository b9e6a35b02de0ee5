"""Swap the order id printed on an invoice PDF, resilient to malformed PDFs."""

from __future__ import annotations

import io
from typing import Optional, Tuple

from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.generic import DecodedStreamObject, DictionaryObject, NameObject

from core.exceptions import DocumentRewriteError
from logging_config import get_logger


logger = get_logger(__name__)

# Where the storefront invoice template prints "Order ID: ..." on page 1 (PDF points)
TEXT_ORIGIN: Tuple[float, float] = (482, 710)
REDACT_BOX: Tuple[float, float, float, float] = (472, 706, 200, 16)
FONT_NAME = "Helvetica"
FONT_SIZE = 10
LABEL = "Order ID: "


def _escape_pdf_string(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


class DocumentIdentifierRewriter:
    """Redacts the order id region on page 1 and stamps the ERP order number."""

    def __init__(
        self,
        text_origin: Tuple[float, float] = TEXT_ORIGIN,
        redact_box: Tuple[float, float, float, float] = REDACT_BOX,
        font_size: float = FONT_SIZE
    ):
        self.text_origin = text_origin
        self.redact_box = redact_box
        self.font_size = font_size

    def rewrite(
        self,
        document: bytes,
        local_order_id: Optional[str],
        external_order_id: Optional[str]
    ) -> bytes:
        """
        Return ``document`` with the external id stamped in.

        The input object itself is returned when there is nothing to do
        (no external id, no local id, or both ids equal) and when the PDF
        cannot be rewritten.
        """
        if not external_order_id:
            return document
        if not local_order_id:
            return document
        if str(external_order_id) == str(local_order_id):
            return document

        try:
            return self._stamp(document, str(external_order_id))
        except Exception as exc:
            logger.error(f"PDF order id rewrite failed for order {local_order_id}: {exc}")
            return document

    def content_stream(self, external_order_id: str) -> bytes:
        x, y = self.text_origin
        bx, by, bw, bh = self.redact_box
        text = _escape_pdf_string(f"{LABEL}{external_order_id}")
        ops = (
            f"q 1 1 1 rg {bx:g} {by:g} {bw:g} {bh:g} re f Q\n"
            f"BT /F1 {self.font_size:g} Tf 0 0 0 rg {x:g} {y:g} Td ({text}) Tj ET\n"
        )
        try:
            return ops.encode("latin-1")
        except UnicodeEncodeError as exc:
            raise DocumentRewriteError(
                f"Order id {external_order_id!r} cannot be drawn with {FONT_NAME}"
            ) from exc

    def _stamp(self, document: bytes, external_order_id: str) -> bytes:
        reader = PdfReader(io.BytesIO(document))
        if not reader.pages:
            raise DocumentRewriteError("PDF has no pages")

        writer = PdfWriter(clone_from=reader)
        page = writer.pages[0]
        width = float(page.mediabox.width)
        height = float(page.mediabox.height)

        overlay = PageObject.create_blank_page(width=width, height=height)
        overlay[NameObject("/Resources")] = DictionaryObject({
            NameObject("/Font"): DictionaryObject({
                NameObject("/F1"): DictionaryObject({
                    NameObject("/Type"): NameObject("/Font"),
                    NameObject("/Subtype"): NameObject("/Type1"),
                    NameObject("/BaseFont"): NameObject(f"/{FONT_NAME}"),
                    NameObject("/Encoding"): NameObject("/WinAnsiEncoding"),
                })
            })
        })
        contents = DecodedStreamObject()
        contents.set_data(self.content_stream(external_order_id))
        overlay[NameObject("/Contents")] = contents

        page.merge_page(overlay)

        output = io.BytesIO()
        writer.write(output)
        return output.getvalue()
