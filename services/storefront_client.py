"""
Read-only storefront and B2B GraphQL queries.

Only the three reads this service needs are implemented: the cart's
physical line items, a product's custom fields, and a company's extra
fields. GraphQL responses arrive either wrapped in ``data`` or bare,
depending on the gateway, so both shapes are accepted.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.exceptions import StorefrontError
from core.http_client import WebhookClient
from models.cart import CartLine
from logging_config import get_logger


logger = get_logger(__name__)


CART_QUERY = """
  query Cart($cartId: String!) {
    site {
      cart(entityId: $cartId) {
        lineItems {
          physicalItems {
            entityId
            sku
            productEntityId
            variantEntityId
            name
            quantity
            originalPrice { value }
          }
        }
      }
    }
  }
"""

PRODUCT_CUSTOM_FIELDS_QUERY = """
  query ProductCustomFields($productId: Int!) {
    site {
      product(entityId: $productId) {
        customFields {
          edges {
            node {
              name
              value
            }
          }
        }
      }
    }
  }
"""

COMPANY_EXTRA_FIELDS_QUERY = """
  query GetCompany($userId: Int!) {
    userCompany(userId: $userId) {
      id
      companyName
      extraFields {
        fieldName
        fieldValue
      }
    }
  }
"""


def _unwrap(response: Any) -> Dict[str, Any]:
    """Strip an optional top-level ``data`` wrapper."""
    if not isinstance(response, dict):
        return {}
    data = response.get("data")
    if isinstance(data, dict):
        return data
    return response


def _dig(data: Dict[str, Any], *path: str) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class StorefrontClient:
    """GraphQL reads against the storefront and the B2B platform."""

    def __init__(
        self,
        http_client: WebhookClient,
        storefront_url: str,
        b2b_url: str = "",
        storefront_token: str = "",
        b2b_token: str = ""
    ):
        self._http = http_client
        self._storefront_url = storefront_url
        self._b2b_url = b2b_url
        self._storefront_token = storefront_token
        self._b2b_token = b2b_token

    def get_cart_lines(self, cart_id: str) -> List[CartLine]:
        """
        Physical line items of a cart.

        Raises:
            StorefrontError: If the query fails
        """
        response = self._query(
            self._storefront_url,
            self._storefront_token,
            CART_QUERY,
            {"cartId": cart_id},
        )
        nodes = _dig(_unwrap(response), "site", "cart", "lineItems", "physicalItems") or []
        if not isinstance(nodes, list):
            raise StorefrontError(f"Cart {cart_id} line items are not a list")
        try:
            return [CartLine.from_storefront(node) for node in nodes if isinstance(node, dict)]
        except (TypeError, ValueError) as e:
            raise StorefrontError(f"Cart {cart_id} returned an unreadable line item: {e}")

    def get_product_custom_fields(self, product_id: int) -> List[Dict[str, str]]:
        """
        Custom fields of a product as ``[{"name", "value"}]``.

        Raises:
            StorefrontError: If the query fails
        """
        response = self._query(
            self._storefront_url,
            self._storefront_token,
            PRODUCT_CUSTOM_FIELDS_QUERY,
            {"productId": product_id},
        )
        edges = _dig(_unwrap(response), "site", "product", "customFields", "edges") or []
        return [
            edge["node"] for edge in edges
            if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
        ]

    def get_company_extra_fields(self, user_id: int) -> Optional[List[Dict[str, str]]]:
        """
        Extra fields of the user's company, or None if the company is not found.

        Raises:
            StorefrontError: If the query fails
        """
        response = self._query(
            self._b2b_url,
            self._b2b_token,
            COMPANY_EXTRA_FIELDS_QUERY,
            {"userId": int(user_id)},
        )
        company = _unwrap(response).get("userCompany")
        if not isinstance(company, dict):
            logger.warning(f"Company not found for user {user_id}")
            return None
        return company.get("extraFields") or []

    def _query(self, url: str, token: str, query: str, variables: Dict[str, Any]) -> Any:
        if not url:
            raise StorefrontError("GraphQL endpoint is not configured")

        headers = {"Authorization": f"Bearer {token}"} if token else None
        response = self._http.post_json(
            url,
            {"query": query, "variables": variables},
            error_cls=StorefrontError,
            headers=headers,
        )
        errors = response.get("errors") if isinstance(response, dict) else None
        if errors:
            raise StorefrontError(f"GraphQL errors: {errors}")
        return response
