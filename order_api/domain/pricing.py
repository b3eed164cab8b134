from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple

TAX_RATE = Decimal("0.08")
FREE_SHIPPING_THRESHOLD = Decimal("100.00")
SHIPPING_FEE = Decimal("9.99")

CENTS = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class OrderTotals(NamedTuple):
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total_amount: Decimal


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return to_money(unit_price * quantity)


def calculate_totals(subtotal: Decimal) -> OrderTotals:
    """Налог 8%, бесплатная доставка при сумме больше 100.00"""
    subtotal = to_money(subtotal)
    tax_amount = to_money(subtotal * TAX_RATE)
    shipping_amount = Decimal("0.00") if subtotal > FREE_SHIPPING_THRESHOLD else SHIPPING_FEE
    return OrderTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        shipping_amount=shipping_amount,
        total_amount=subtotal + tax_amount + shipping_amount,
    )
