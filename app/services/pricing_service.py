# app/services/pricing_service.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from app.utils.settings import FREE_SHIPPING_THRESHOLD, TAX_RATE

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

SHIPPING_FEES = {
    "RW": Decimal("5.00"),
    "US": Decimal("15.00"),
    "CA": Decimal("15.00"),
    "GB": Decimal("15.00"),
    "AU": Decimal("20.00"),
    "DE": Decimal("20.00"),
    "FR": Decimal("20.00"),
    "IT": Decimal("20.00"),
    "ES": Decimal("20.00"),
}
DEFAULT_SHIPPING_FEE = Decimal("25.00")


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    product: object
    quantity: int


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal

    def as_dict(self) -> dict:
        return {
            "subtotal": money(self.subtotal),
            "shipping_amount": money(self.shipping_amount),
            "tax_amount": money(self.tax_amount),
            "discount_amount": money(self.discount_amount),
            "total_amount": self.total_amount,
        }


class PricingService:
    """
    Pure money math over cart lines, no I/O.
    Everything stays in Decimal; only the final total is rounded (half up).
    """

    def __init__(self, tax_rate: Decimal = TAX_RATE, free_shipping_threshold: Decimal = FREE_SHIPPING_THRESHOLD):
        self.tax_rate = tax_rate
        self.free_shipping_threshold = free_shipping_threshold

    @staticmethod
    def unit_price(product) -> Decimal:
        discount = product.discount_price
        if discount is not None and Decimal(discount) > 0:
            return Decimal(discount)
        return Decimal(product.price)

    def line_total(self, line: CartLine) -> Decimal:
        return self.unit_price(line.product) * line.quantity

    def subtotal(self, lines: Iterable[CartLine]) -> Decimal:
        return sum((self.line_total(line) for line in lines), ZERO)

    def shipping_for_subtotal(self, subtotal: Decimal, country: Optional[str]) -> Decimal:
        if subtotal >= self.free_shipping_threshold:
            return ZERO
        code = (country or "").strip().upper()
        return SHIPPING_FEES.get(code, DEFAULT_SHIPPING_FEE)

    def shipping_amount(self, lines: Iterable[CartLine], country: Optional[str]) -> Decimal:
        return self.shipping_for_subtotal(self.subtotal(lines), country)

    def tax_amount(self, subtotal: Decimal) -> Decimal:
        return subtotal * self.tax_rate

    def total(self, lines: Iterable[CartLine], country: Optional[str]) -> Decimal:
        return self.breakdown(lines, country).total_amount

    def breakdown(self, lines: Iterable[CartLine], country: Optional[str]) -> PriceBreakdown:
        lines = list(lines)
        subtotal = self.subtotal(lines)
        shipping = self.shipping_for_subtotal(subtotal, country)
        tax = self.tax_amount(subtotal)
        # no promotions yet
        discount = ZERO
        return PriceBreakdown(
            subtotal=subtotal,
            shipping_amount=shipping,
            tax_amount=tax,
            discount_amount=discount,
            total_amount=money(subtotal + shipping + tax - discount),
        )
