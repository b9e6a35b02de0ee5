"""
Request body parsing shared by the JSON blueprints.

Identifiers arriving from the browser are cleaned with bleach before they
reach a service or a log line.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

import bleach
from flask import request

from core.exceptions import InvalidLineItemError
from models.pricing import LineItem, PricingContext, to_decimal


MAX_ID_LENGTH = 64
MAX_ITEMS_PER_REQUEST = 200
MAX_URL_LENGTH = 2048


def sanitize_text(text: Any, max_length: int = None) -> str:
    """Sanitize user input text."""
    if text is None:
        return ""
    text = str(text).strip()
    text = bleach.clean(text, tags=[], strip=True)
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


def sanitize_id(value: Any) -> str:
    return sanitize_text(value, max_length=MAX_ID_LENGTH)


def json_body() -> Dict[str, Any]:
    """
    Parsed JSON object body.

    Raises:
        InvalidLineItemError: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidLineItemError("Request body must be a JSON object")
    return data


def parse_context(data: Optional[Dict[str, Any]]) -> PricingContext:
    if not isinstance(data, dict):
        return PricingContext(customer_id=None, group_code=None, is_privileged=False)
    cleaned = dict(data)
    for key in ("customer_id", "group_code", "customer_group_code"):
        if cleaned.get(key) is not None:
            cleaned[key] = sanitize_id(cleaned[key])
    return PricingContext.from_dict(cleaned)


def parse_item(data: Any) -> LineItem:
    if not isinstance(data, dict):
        raise InvalidLineItemError("Each item must be a JSON object")
    cleaned = dict(data)
    for key in ("product_id", "sku", "variant_id"):
        if cleaned.get(key) is not None:
            cleaned[key] = sanitize_id(cleaned[key])
    return LineItem.from_dict(cleaned)


def parse_items(data: Any) -> List[LineItem]:
    if not isinstance(data, list):
        raise InvalidLineItemError("items must be a list")
    if len(data) > MAX_ITEMS_PER_REQUEST:
        raise InvalidLineItemError(f"At most {MAX_ITEMS_PER_REQUEST} items per request")
    return [parse_item(entry) for entry in data]


def parse_prices(data: Any, item_count: int) -> Dict[int, Decimal]:
    """
    ``{"0": "19.99", "2": 5}`` -> ``{0: Decimal("19.99"), 2: Decimal("5")}``

    Raises:
        InvalidLineItemError: On an out-of-range index or a bad price
    """
    if not data:
        return {}
    if not isinstance(data, dict):
        raise InvalidLineItemError("prices must be an object keyed by item index")

    prices: Dict[int, Decimal] = {}
    for key, value in data.items():
        try:
            index = int(key)
        except (TypeError, ValueError):
            raise InvalidLineItemError(f"Invalid price index {key!r}")
        if not 0 <= index < item_count:
            raise InvalidLineItemError(f"Price index {index} out of range")
        price = to_decimal(value, None)
        if price is None or price < 0:
            raise InvalidLineItemError(f"Invalid price {value!r} for item {index}")
        prices[index] = price
    return prices


def parse_pdf_url(data: Dict[str, Any], allowed_hosts: Iterable[str]) -> str:
    """
    The ``pdf_url`` to fetch an invoice from.

    Only http(s) URLs on one of ``allowed_hosts`` are accepted; with no
    allowed hosts configured every URL is refused. Not passed through
    bleach, which would escape ``&`` in the query string.
    """
    pdf_url = str(data.get("pdf_url") or "").strip()
    if not pdf_url or len(pdf_url) > MAX_URL_LENGTH:
        raise InvalidLineItemError("pdf_url is required")

    parsed = urlparse(pdf_url)
    if parsed.scheme not in ("http", "https"):
        raise InvalidLineItemError("pdf_url must be an http(s) URL")

    hosts = {host.strip().lower() for host in allowed_hosts if host and host.strip()}
    if not parsed.hostname or parsed.hostname.lower() not in hosts:
        raise InvalidLineItemError(
            f"pdf_url host is not allowed: {sanitize_text(parsed.hostname, MAX_ID_LENGTH)}"
        )
    return pdf_url
