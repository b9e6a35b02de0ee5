"""
Company identity used for ERP pricing.

A B2B company stores its ERP customer id and customer group code as
free-form "extra fields". Field names are typed by hand in the admin, so
several spellings are accepted for each (CustID, custId, Epicor GroupCode,
EPICOR GROUPCODE, ...). Names are compared after lower-casing and removing
all whitespace.

Sources are tried in order and the first one that yields anything wins:
    1. CustomerDataProvider       - customer data handed over by the page
    2. GraphQLCompanyFieldProvider - B2B userCompany.extraFields query
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from core.exceptions import RemoteServiceError
from models.pricing import PricingContext
from logging_config import get_logger

from .storefront_client import StorefrontClient


logger = get_logger(__name__)

CUSTOMER_ID_ALIASES = frozenset({"custid"})
GROUP_CODE_ALIASES = frozenset({"epicorgroupcode"})

_WHITESPACE = re.compile(r"\s+")


def normalize_field_name(name: Any) -> str:
    """'Epicor GroupCode' -> 'epicorgroupcode'"""
    if name is None:
        return ""
    return _WHITESPACE.sub("", str(name)).lower()


@dataclass(frozen=True)
class CompanyFields:
    """ERP identity of a company. Either value may be missing."""

    customer_id: Optional[str] = None
    group_code: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.customer_id and not self.group_code

    def to_context(self, is_privileged: bool) -> PricingContext:
        return PricingContext(
            customer_id=self.customer_id,
            group_code=self.group_code,
            is_privileged=is_privileged,
        )


def _clean_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_company_fields(extra_fields: Optional[Iterable[Mapping[str, Any]]]) -> CompanyFields:
    """
    Pick customer id and group code out of ``[{fieldName, fieldValue}]``.

    The first non-empty value for each alias set wins.
    """
    customer_id = None
    group_code = None

    for entry in extra_fields or []:
        if not isinstance(entry, Mapping):
            continue
        name = normalize_field_name(entry.get("fieldName"))
        value = _clean_value(entry.get("fieldValue"))
        if value is None:
            continue
        if customer_id is None and name in CUSTOMER_ID_ALIASES:
            customer_id = value
        elif group_code is None and name in GROUP_CODE_ALIASES:
            group_code = value

    return CompanyFields(customer_id=customer_id, group_code=group_code)


class CompanyFieldProvider(ABC):
    """One source of company identity."""

    name = "base"

    @abstractmethod
    def get_fields(self, user_id: Optional[int]) -> Optional[CompanyFields]:
        """Return the company's fields, or None if this source has nothing."""
        pass


class CustomerDataProvider(CompanyFieldProvider):
    """
    Identity supplied up front by the caller, e.g. as
    ``{"customer_id": "C100", "customer_group_code": "GOLD"}``.
    """

    name = "customer_data"

    def __init__(self, customer_data: Optional[Mapping[str, Any]] = None):
        self._data = dict(customer_data or {})

    def get_fields(self, user_id: Optional[int]) -> Optional[CompanyFields]:
        if not self._data:
            return None
        fields = CompanyFields(
            customer_id=_clean_value(self._data.get("customer_id")),
            group_code=_clean_value(
                self._data.get("customer_group_code", self._data.get("group_code"))
            ),
        )
        return None if fields.is_empty else fields


class GraphQLCompanyFieldProvider(CompanyFieldProvider):
    """Reads ``userCompany.extraFields`` from the B2B GraphQL API."""

    name = "graphql"

    def __init__(self, storefront: StorefrontClient):
        self._storefront = storefront

    def get_fields(self, user_id: Optional[int]) -> Optional[CompanyFields]:
        if not user_id:
            logger.warning("No user id available, cannot query company extra fields")
            return None

        try:
            extra_fields = self._storefront.get_company_extra_fields(user_id)
        except RemoteServiceError as e:
            logger.error(f"Company extra fields query failed for user {user_id}: {e}")
            return None

        if extra_fields is None:
            return None

        fields = extract_company_fields(extra_fields)
        return None if fields.is_empty else fields


class CompanyFieldResolver:
    """Tries each provider in order; first non-None result wins."""

    def __init__(self, providers: Sequence[CompanyFieldProvider]):
        self._providers: List[CompanyFieldProvider] = list(providers)

    def resolve(self, user_id: Optional[int] = None) -> CompanyFields:
        for provider in self._providers:
            fields = provider.get_fields(user_id)
            if fields is not None:
                logger.debug(f"Company fields for user {user_id} from {provider.name}")
                return fields
        logger.warning(f"No company fields found for user {user_id}")
        return CompanyFields()

    def build_context(self, user_id: Optional[int], is_privileged: bool) -> PricingContext:
        """
        Pricing context for a user.

        Non-privileged users never reach the ERP, so their company is not looked up.
        """
        if not is_privileged:
            return PricingContext(customer_id=None, group_code=None, is_privileged=False)
        return self.resolve(user_id).to_context(is_privileged=True)


def providers_for(
    storefront: StorefrontClient,
    customer_data: Optional[Dict[str, Any]] = None
) -> List[CompanyFieldProvider]:
    """Default provider chain."""
    return [CustomerDataProvider(customer_data), GraphQLCompanyFieldProvider(storefront)]
