"""Tests for tax, shipping and total computation."""

from decimal import Decimal

import pytest

from order_api.domain.pricing import calculate_totals, line_total


@pytest.mark.parametrize(
    "subtotal, tax, shipping, total",
    [
        ("150.00", "12.00", "0.00", "162.00"),
        ("100.00", "8.00", "9.99", "117.99"),
        ("100.01", "8.00", "0.00", "108.01"),
        ("10.00", "0.80", "9.99", "20.79"),
        ("0.06", "0.00", "9.99", "10.05"),
        ("0.07", "0.01", "9.99", "10.07"),
    ],
)
def test_calculate_totals(subtotal, tax, shipping, total):
    totals = calculate_totals(Decimal(subtotal))

    assert totals.subtotal == Decimal(subtotal)
    assert totals.tax_amount == Decimal(tax)
    assert totals.shipping_amount == Decimal(shipping)
    assert totals.total_amount == Decimal(total)


def test_line_total():
    assert line_total(Decimal("79.99"), 3) == Decimal("239.97")
