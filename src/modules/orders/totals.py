"""Order totals calculation.

Pure arithmetic over priced lines.  Every figure is rounded half-up to
two decimal places as it is produced, so the persisted amounts always
satisfy ``total == subtotal + tax + shipping - discount`` exactly.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, NamedTuple

from modules.orders.exceptions import OrderValidationError

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class PricedLine(NamedTuple):
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return quantize(self.unit_price * self.quantity)


class OrderTotals(NamedTuple):
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


class TotalsCalculator:
    """Compute subtotal, tax, shipping and grand total for an order.

    Args:
        tax_rate: Fraction of the subtotal charged as tax (``0.18`` = 18%).
        free_shipping_threshold: Subtotal from which shipping is free.
        flat_shipping_fee: Shipping charged below the threshold.
    """

    def __init__(
        self,
        tax_rate: Decimal,
        free_shipping_threshold: Decimal,
        flat_shipping_fee: Decimal,
    ) -> None:
        self.tax_rate = Decimal(tax_rate)
        self.free_shipping_threshold = Decimal(free_shipping_threshold)
        self.flat_shipping_fee = quantize(flat_shipping_fee)

    def calculate(
        self, lines: Iterable[PricedLine], discount: Decimal = ZERO
    ) -> OrderTotals:
        """Return the totals for ``lines``.

        Raises:
            OrderValidationError: ``discount`` is negative or larger than
                the amount it is subtracted from.
        """
        subtotal = quantize(sum((line.line_total for line in lines), ZERO))
        tax = quantize(subtotal * self.tax_rate)
        shipping = (
            ZERO if subtotal >= self.free_shipping_threshold else self.flat_shipping_fee
        )
        discount = quantize(discount)

        gross = subtotal + tax + shipping
        if discount < ZERO:
            raise OrderValidationError(
                "Discount cannot be negative.", details={"discount": str(discount)}
            )
        if discount > gross:
            raise OrderValidationError(
                "Discount cannot exceed the order amount.",
                details={"discount": str(discount), "amount": str(gross)},
            )

        return OrderTotals(
            subtotal=subtotal,
            tax_amount=tax,
            shipping_amount=shipping,
            discount_amount=discount,
            total_amount=quantize(gross - discount),
        )
