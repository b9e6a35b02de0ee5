"""Unit tests for the catalog price fallback."""

from decimal import Decimal

from models.pricing import LineItem, PriceSource, VariantPrice
from services.catalog_pricing import CatalogPriceFallback


def _item(**overrides):
    fields = dict(
        product_id="7",
        sku="S-7",
        quantity=1,
        catalog_base_price=Decimal("10.00"),
        catalog_tax_price=Decimal("0.80"),
    )
    fields.update(overrides)
    return LineItem(**fields)


class TestCatalogPriceFallback:
    """Test fallback price selection."""

    def test_base_price_when_tax_exclusive(self):
        assert CatalogPriceFallback().unit_price(_item()) == Decimal("10.00")

    def test_base_plus_tax_when_tax_inclusive(self):
        fallback = CatalogPriceFallback(show_inclusive_tax_price=True)
        assert fallback.unit_price(_item()) == Decimal("10.80")

    def test_variant_price_wins(self):
        item = _item(
            variant_id="99",
            variants=(VariantPrice("99", Decimal("12.00"), Decimal("12.96")),),
        )
        assert CatalogPriceFallback().unit_price(item) == Decimal("12.00")
        assert CatalogPriceFallback(show_inclusive_tax_price=True).unit_price(item) == Decimal("12.96")

    def test_zero_variant_price_uses_base(self):
        item = _item(variant_id="99", variants=(VariantPrice("99"),))
        assert CatalogPriceFallback().unit_price(item) == Decimal("10.00")

    def test_negative_price_clamped(self):
        assert CatalogPriceFallback().unit_price(_item(catalog_base_price=Decimal("-3"))) == Decimal("0")

    def test_price_is_tagged_fallback(self):
        price = CatalogPriceFallback().price(_item(), error="Part not found")
        assert price.source is PriceSource.FALLBACK
        assert price.currency == "USD"
        assert price.error == "Part not found"
        assert not price.is_remote
