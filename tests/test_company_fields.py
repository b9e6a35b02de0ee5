"""Unit tests for company identity lookup."""

from unittest.mock import MagicMock

import pytest

from core.exceptions import StorefrontError
from services.company_fields import (
    CompanyFieldProvider,
    CompanyFieldResolver,
    CompanyFields,
    CustomerDataProvider,
    GraphQLCompanyFieldProvider,
    extract_company_fields,
    normalize_field_name,
)


class TestFieldNames:
    """Test alias normalisation."""

    @pytest.mark.parametrize("name", ["CustID", "CustId", "custID", "custId", "CUSTID", " Cust ID "])
    def test_customer_id_aliases(self, name):
        assert normalize_field_name(name) == "custid"

    @pytest.mark.parametrize("name", [
        "Epicor GroupCode", "EpicorGroupCode", "epicor groupcode", "Epicor groupcode", "EPICOR GROUPCODE",
    ])
    def test_group_code_aliases(self, name):
        assert normalize_field_name(name) == "epicorgroupcode"

    def test_extract_company_fields(self):
        fields = extract_company_fields([
            {"fieldName": "Region", "fieldValue": "West"},
            {"fieldName": "CUSTID", "fieldValue": " C100 "},
            {"fieldName": "Epicor GroupCode", "fieldValue": "GOLD"},
            {"fieldName": "custId", "fieldValue": "IGNORED"},
        ])
        assert fields == CompanyFields(customer_id="C100", group_code="GOLD")

    def test_blank_values_skipped(self):
        fields = extract_company_fields([
            {"fieldName": "CustID", "fieldValue": ""},
            {"fieldName": "custid", "fieldValue": "C200"},
        ])
        assert fields.customer_id == "C200"
        assert fields.group_code is None


class TestProviders:
    """Test the provider chain."""

    def test_customer_data_wins(self):
        storefront = MagicMock()
        resolver = CompanyFieldResolver([
            CustomerDataProvider({"customer_id": "C1", "customer_group_code": "G1"}),
            GraphQLCompanyFieldProvider(storefront),
        ])

        assert resolver.resolve(5) == CompanyFields("C1", "G1")
        storefront.get_company_extra_fields.assert_not_called()

    def test_graphql_used_without_customer_data(self):
        storefront = MagicMock()
        storefront.get_company_extra_fields.return_value = [
            {"fieldName": "CustID", "fieldValue": "C9"},
        ]
        resolver = CompanyFieldResolver([
            CustomerDataProvider(None),
            GraphQLCompanyFieldProvider(storefront),
        ])

        context = resolver.build_context(5, is_privileged=True)

        assert context.customer_id == "C9"
        assert context.group_code is None
        assert context.is_privileged
        storefront.get_company_extra_fields.assert_called_once_with(5)

    def test_graphql_failure_yields_empty_identity(self):
        storefront = MagicMock()
        storefront.get_company_extra_fields.side_effect = StorefrontError("down")
        resolver = CompanyFieldResolver([GraphQLCompanyFieldProvider(storefront)])

        assert resolver.resolve(5) == CompanyFields()

    def test_non_privileged_skips_lookup(self):
        storefront = MagicMock()
        resolver = CompanyFieldResolver([GraphQLCompanyFieldProvider(storefront)])

        context = resolver.build_context(5, is_privileged=False)

        assert not context.is_privileged
        storefront.get_company_extra_fields.assert_not_called()

    def test_missing_user_id(self):
        storefront = MagicMock()
        provider = GraphQLCompanyFieldProvider(storefront)
        assert provider.get_fields(None) is None
        storefront.get_company_extra_fields.assert_not_called()

    def test_provider_must_implement_get_fields(self):
        class Unfinished(CompanyFieldProvider):
            name = "unfinished"

        with pytest.raises(TypeError):
            Unfinished()
