"""
Order number rewrite for the storefront's printable HTML invoice.

The HTML invoice prints the storefront order id in a handful of places
("Invoice for Order #1869", "Order: 1869", "#1869"). Each occurrence is
swapped for the ERP order number; the rest of the markup is untouched.

All labels are matched in a single pass, so text that has already been
rewritten is never matched again (an ERP number such as "1869-B" still
starts with the storefront id).
"""

from __future__ import annotations

import re
from typing import Optional, Pattern

import bleach


# Longest label first; at any position the leftmost, longest label wins.
ORDER_ID_LABELS = (
    r"Invoice\s+for\s+Order\s*#\s*",
    r"for\s+Order\s*#\s*",
    r"Order\s*#\s*",
    r"Order:\s*#?\s*",
    r"#",
)


def _pattern(order_id: str) -> Pattern[str]:
    labels = "|".join(ORDER_ID_LABELS)
    return re.compile(rf"(?P<label>{labels}){re.escape(order_id)}(?!\d)", re.IGNORECASE)


def replace_order_id_in_html(
    html: str,
    local_order_id: Optional[str],
    external_order_id: Optional[str]
) -> str:
    """
    Replace the storefront order id with the ERP order number.

    Returns ``html`` unchanged when either id is missing or they are equal.
    The ERP number is HTML-escaped before insertion.
    """
    if not html or not external_order_id or not local_order_id:
        return html

    local_order_id = str(local_order_id)
    if str(external_order_id) == local_order_id:
        return html

    replacement = bleach.clean(str(external_order_id), tags=[], strip=True)

    return _pattern(local_order_id).sub(
        lambda match: match.group("label") + replacement,
        html,
    )
