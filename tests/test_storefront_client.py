"""Unit tests for the storefront/B2B GraphQL reader."""

from decimal import Decimal

import pytest

from core.exceptions import StorefrontError
from services.storefront_client import StorefrontClient


@pytest.fixture
def client(http_client):
    return StorefrontClient(
        http_client,
        storefront_url="http://store.test/graphql",
        b2b_url="http://b2b.test/graphql",
        storefront_token="sf-token",
        b2b_token="b2b-token",
    )


class TestStorefrontClient:
    """Test response unwrapping and error handling."""

    def test_cart_lines(self, client, http_client):
        http_client.post_json.return_value = {"data": {"site": {"cart": {"lineItems": {"physicalItems": [
            {
                "entityId": "line-1",
                "sku": "A",
                "productEntityId": 10,
                "variantEntityId": 20,
                "name": "Widget",
                "quantity": 3,
                "originalPrice": {"value": 4.5},
            },
        ]}}}}}

        lines = client.get_cart_lines("cart-1")

        assert len(lines) == 1
        assert lines[0].line_id == "line-1"
        assert lines[0].product_id == "10"
        assert lines[0].variant_id == "20"
        assert lines[0].current_unit_price == Decimal("4.5")
        url, body = http_client.post_json.call_args[0]
        assert url == "http://store.test/graphql"
        assert body["variables"] == {"cartId": "cart-1"}
        assert http_client.post_json.call_args[1]["headers"] == {"Authorization": "Bearer sf-token"}

    @pytest.mark.parametrize("quantity", ["two", None, 0, -3, 2.5, {"value": 2}])
    def test_unusable_line_quantity_read_as_one(self, client, http_client, quantity):
        http_client.post_json.return_value = {"data": {"site": {"cart": {"lineItems": {"physicalItems": [
            {"entityId": "line-1", "productEntityId": 10, "quantity": quantity, "originalPrice": "4.5"},
        ]}}}}}

        lines = client.get_cart_lines("cart-1")

        assert lines[0].quantity == 1
        assert lines[0].current_unit_price == Decimal("0")

    def test_line_items_not_a_list_raise(self, client, http_client):
        http_client.post_json.return_value = {"data": {"site": {"cart": {"lineItems": {
            "physicalItems": {"entityId": "line-1"},
        }}}}}
        with pytest.raises(StorefrontError):
            client.get_cart_lines("cart-1")

    def test_missing_cart_is_empty(self, client, http_client):
        http_client.post_json.return_value = {"data": {"site": {"cart": None}}}
        assert client.get_cart_lines("cart-1") == []

    def test_product_custom_fields(self, client, http_client):
        http_client.post_json.return_value = {"data": {"site": {"product": {"customFields": {"edges": [
            {"node": {"name": "show_price", "value": "yes"}},
        ]}}}}}

        assert client.get_product_custom_fields(12) == [{"name": "show_price", "value": "yes"}]

    def test_company_extra_fields_unwrapped_response(self, client, http_client):
        http_client.post_json.return_value = {"userCompany": {
            "id": "1",
            "extraFields": [{"fieldName": "CustID", "fieldValue": "C1"}],
        }}

        assert client.get_company_extra_fields(5) == [{"fieldName": "CustID", "fieldValue": "C1"}]
        assert http_client.post_json.call_args[0][0] == "http://b2b.test/graphql"

    def test_company_not_found(self, client, http_client):
        http_client.post_json.return_value = {"data": {"userCompany": None}}
        assert client.get_company_extra_fields(5) is None

    def test_graphql_errors_raise(self, client, http_client):
        http_client.post_json.return_value = {"errors": [{"message": "bad query"}]}
        with pytest.raises(StorefrontError):
            client.get_cart_lines("cart-1")

    def test_unconfigured_endpoint_raises(self, http_client):
        client = StorefrontClient(http_client, storefront_url="")
        with pytest.raises(StorefrontError):
            client.get_cart_lines("cart-1")
        http_client.post_json.assert_not_called()
