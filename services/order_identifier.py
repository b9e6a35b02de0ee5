"""
Storefront order id -> ERP order number.

The lookup webhook answers in one of three shapes depending on how the
integration recorded the order:

    {"success": true, "EpicorErpOrderNumber": "491655"}
    {"EpicorErpOrderNumber": "491655"}
    {"data": [{"namespace": "Sales Department",
               "key": "order_integration_info",
               "value": "{\"EpicorErpOrderNumber\": \"491655\", ...}"}]}

Anything else means "no ERP number": documents keep the storefront id.
"""

from __future__ import annotations

from typing import Any, Dict, MutableMapping, Optional

from core.exceptions import OrderLookupError
from core.http_client import WebhookClient
from models.order import (
    INTEGRATION_KEY,
    INTEGRATION_NAMESPACE,
    OrderIdentifierMapping,
    OrderIntegrationInfo,
)
from logging_config import get_logger


logger = get_logger(__name__)

ERP_ORDER_NUMBER_FIELD = "EpicorErpOrderNumber"


def extract_external_order_id(data: Any) -> Optional[str]:
    """
    Pull the ERP order number out of a lookup response.

    Returns:
        The order number, or None for ``success: false`` and unknown shapes
    """
    if not isinstance(data, dict):
        return None

    if data.get("success") is False:
        return None

    number = data.get(ERP_ORDER_NUMBER_FIELD)
    if number not in (None, ""):
        return str(number)

    metafields = data.get("data")
    if isinstance(metafields, list):
        for field in metafields:
            if not isinstance(field, dict):
                continue
            if field.get("namespace") != INTEGRATION_NAMESPACE or field.get("key") != INTEGRATION_KEY:
                continue
            info = OrderIntegrationInfo.from_metafield_value(field.get("value"))
            if info is None:
                logger.error(f"Unparseable {INTEGRATION_KEY} metafield value")
                return None
            return info.erp_order_number or None

    return None


class OrderIdentifierResolver:
    """Resolves ERP order numbers; never raises."""

    def __init__(self, http_client: WebhookClient, url: str):
        self._http = http_client
        self._url = url

    def resolve_external_order_id(
        self,
        local_order_id: Any,
        known_mappings: Optional[MutableMapping[str, Optional[str]]] = None
    ) -> Optional[str]:
        """
        ERP order number for a storefront order id, or None.

        Args:
            local_order_id: Storefront order id
            known_mappings: Caller-owned cache (e.g. one page's batch of
                orders). Consulted first; a stored None is a final answer.
                Updated with the result of a remote lookup.
        """
        if local_order_id in (None, ""):
            return None
        local_order_id = str(local_order_id)

        if known_mappings is not None and local_order_id in known_mappings:
            return known_mappings[local_order_id]

        external_id = self._lookup(local_order_id)

        if known_mappings is not None:
            known_mappings[local_order_id] = external_id
        return external_id

    def resolve_mapping(
        self,
        local_order_id: Any,
        known_mappings: Optional[MutableMapping[str, Optional[str]]] = None
    ) -> OrderIdentifierMapping:
        return OrderIdentifierMapping(
            local_order_id=str(local_order_id),
            external_order_id=self.resolve_external_order_id(local_order_id, known_mappings),
        )

    def _lookup(self, local_order_id: str) -> Optional[str]:
        if not self._url:
            logger.warning("ORDER_LOOKUP_URL is not configured, keeping storefront order ids")
            return None

        params: Dict[str, Any] = {"orderId": local_order_id}
        try:
            data = self._http.get_json(self._url, params=params, error_cls=OrderLookupError)
        except OrderLookupError as e:
            logger.error(f"Order lookup failed for order {local_order_id}: {e}")
            return None

        external_id = extract_external_order_id(data)
        if external_id:
            logger.debug(f"Order {local_order_id} maps to ERP order {external_id}")
        return external_id
