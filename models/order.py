"""
Order identifier models.

An invoice generated by the storefront carries the storefront's order id.
When the ERP has booked the same order under its own number, invoices
should show the ERP number instead.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional


INTEGRATION_NAMESPACE = "Sales Department"
INTEGRATION_KEY = "order_integration_info"


@dataclass(frozen=True)
class OrderIdentifierMapping:
    """
    Local (storefront) order id and the external (ERP) order id, if any.

    ``external_order_id is None`` is a valid terminal state meaning
    "use the local id everywhere".
    """

    local_order_id: str
    external_order_id: Optional[str] = None

    @property
    def display_id(self) -> str:
        """The id to print on documents."""
        return self.external_order_id or self.local_order_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.local_order_id,
            "external_order_id": self.external_order_id,
        }


@dataclass(frozen=True)
class OrderIntegrationInfo:
    """Integration record stored as a JSON order metafield."""

    storefront_order_id: str = ""
    created_at: str = ""
    erp_order_number: str = ""
    erp_order_status: str = ""

    @classmethod
    def from_metafield_value(cls, value: Any) -> Optional["OrderIntegrationInfo"]:
        """
        Parse a metafield ``value`` (a JSON string or an already-decoded dict).

        Returns:
            OrderIntegrationInfo, or None if the value is not a JSON object
        """
        if isinstance(value, dict):
            data = value
        else:
            try:
                data = json.loads(value)
            except (TypeError, ValueError):
                return None
        if not isinstance(data, dict):
            return None
        return cls(
            storefront_order_id=str(data.get("BigCommerceOrderId") or ""),
            created_at=str(data.get("OrderCreationTime") or ""),
            erp_order_number=str(data.get("EpicorErpOrderNumber") or ""),
            erp_order_status=str(data.get("EpicorOrderStatus") or ""),
        )
