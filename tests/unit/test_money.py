"""Unit tests for money helpers."""

import pytest
from decimal import Decimal

from revenue_ledger.utils.money import format_money, to_money


def test_to_money_rounds_half_up():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money("2.344") == Decimal("2.34")


def test_to_money_float_goes_through_str():
    assert to_money(0.1) == Decimal("0.10")


def test_to_money_blank_is_zero():
    assert to_money(None) == Decimal("0.00")
    assert to_money("  ") == Decimal("0.00")


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", object()])
def test_to_money_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        to_money(value)


def test_format_money():
    assert format_money(Decimal("1234.5")) == "GHS 1,234.50"
    assert format_money(Decimal("3"), symbol="$") == "$ 3.00"
