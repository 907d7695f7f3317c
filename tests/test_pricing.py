"""
Tests for the pricing engine: unit price, shipping tiers, tax and totals.
"""
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.pricing_service import CartLine, PricingService, money


def product(price, discount=None):
    return SimpleNamespace(
        price=Decimal(price),
        discount_price=Decimal(discount) if discount is not None else None,
    )


@pytest.fixture
def pricing():
    return PricingService(tax_rate=Decimal("0.10"), free_shipping_threshold=Decimal("100.00"))


class TestUnitPrice:
    def test_list_price_without_discount(self, pricing):
        assert pricing.unit_price(product("19.99")) == Decimal("19.99")

    def test_positive_discount_wins(self, pricing):
        assert pricing.unit_price(product("19.99", "14.99")) == Decimal("14.99")

    def test_zero_discount_is_ignored(self, pricing):
        assert pricing.unit_price(product("19.99", "0.00")) == Decimal("19.99")


class TestShipping:
    @pytest.mark.parametrize(
        "country, fee",
        [
            ("RW", "5.00"),
            ("US", "15.00"),
            ("ca", "15.00"),
            (" gb ", "15.00"),
            ("DE", "20.00"),
            ("es", "20.00"),
            ("PL", "25.00"),
            (None, "25.00"),
        ],
    )
    def test_fee_by_country(self, pricing, country, fee):
        assert pricing.shipping_for_subtotal(Decimal("40.00"), country) == Decimal(fee)

    def test_free_at_threshold(self, pricing):
        assert pricing.shipping_for_subtotal(Decimal("100.00"), "PL") == Decimal("0")

    def test_charged_just_below_threshold(self, pricing):
        assert pricing.shipping_for_subtotal(Decimal("99.99"), "US") == Decimal("15.00")


class TestBreakdown:
    def test_free_shipping_order(self, pricing):
        """3 x 50.00 -> 150.00 subtotal, free shipping, 15.00 tax, 165.00 total."""
        lines = [CartLine(product=product("50.00"), quantity=3)]

        b = pricing.breakdown(lines, "US")

        assert b.subtotal == Decimal("150.00")
        assert b.shipping_amount == Decimal("0")
        assert money(b.tax_amount) == Decimal("15.00")
        assert b.discount_amount == Decimal("0")
        assert b.total_amount == Decimal("165.00")

    def test_us_order_below_threshold(self, pricing):
        """40.00 subtotal to US -> 15.00 shipping, 4.00 tax, 59.00 total."""
        lines = [
            CartLine(product=product("25.00"), quantity=1),
            CartLine(product=product("20.00", "15.00"), quantity=1),
        ]

        b = pricing.breakdown(lines, "US")

        assert b.subtotal == Decimal("40.00")
        assert b.shipping_amount == Decimal("15.00")
        assert money(b.tax_amount) == Decimal("4.00")
        assert b.total_amount == Decimal("59.00")

    def test_total_rounds_half_up_once(self, pricing):
        # 12.35 + 10% tax = 13.585 -> 13.59, plus 25.00 default shipping
        lines = [CartLine(product=product("12.35"), quantity=1)]

        b = pricing.breakdown(lines, "PL")

        assert b.tax_amount == Decimal("1.2350")
        assert b.total_amount == Decimal("38.59")

    def test_empty_cart(self, pricing):
        b = pricing.breakdown([], "US")

        assert b.subtotal == Decimal("0")
        assert b.total_amount == Decimal("15.00")

    def test_total_agrees_with_breakdown(self, pricing):
        lines = [CartLine(product=product("20.00"), quantity=2)]

        assert pricing.total(lines, "us") == pricing.breakdown(lines, "US").total_amount
        assert pricing.total(lines, "us") == Decimal("59.00")

    def test_shipping_amount_from_lines(self, pricing):
        cheap = [CartLine(product=product("20.00"), quantity=2)]
        big = [CartLine(product=product("50.00"), quantity=2)]

        assert pricing.shipping_amount(cheap, "rw") == Decimal("5.00")
        assert pricing.shipping_amount(cheap, "Fr") == Decimal("20.00")
        assert pricing.shipping_amount(cheap, "BR") == Decimal("25.00")
        assert pricing.shipping_amount(big, "BR") == Decimal("0")

    def test_total_matches_parts(self, pricing):
        lines = [
            CartLine(product=product("9.99"), quantity=7),
            CartLine(product=product("3.33", "2.22"), quantity=3),
        ]

        b = pricing.breakdown(lines, "FR")
        parts = b.as_dict()

        expected = parts["subtotal"] + parts["tax_amount"] + parts["shipping_amount"] - parts["discount_amount"]
        assert abs(parts["total_amount"] - expected) <= Decimal("0.01")

    def test_as_dict_is_rounded_to_cents(self, pricing):
        lines = [CartLine(product=product("12.35"), quantity=1)]

        parts = pricing.breakdown(lines, "US").as_dict()

        assert parts["tax_amount"] == Decimal("1.24")
        assert all(v.as_tuple().exponent == -2 for v in parts.values())
