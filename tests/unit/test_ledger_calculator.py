"""Unit tests for LedgerCalculator."""

import pytest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

from revenue_ledger.config import settings
from revenue_ledger.core.exceptions import InvalidAmountError, PayerValidationError
from revenue_ledger.services.ledger_calculator import LedgerCalculator


def test_amount_payable_formula():
    result = LedgerCalculator.compute_amount_payable(
        old_bill="50.00", arrears="20.00", current_bill="100.00", previous_payments="30.00"
    )
    assert result == Decimal("140.00")


@pytest.mark.parametrize(
    "old_bill, arrears, current_bill, previous_payments, expected",
    [
        (0, 0, 0, 0, "0.00"),
        ("0.10", "0.20", "0.30", "0.00", "0.60"),
        (0.1, 0.2, 0, 0, "0.30"),
        ("1234.565", "0", "0", "0", "1234.57"),
        ("10.00", "0", "0", "25.00", "-15.00"),
    ],
)
def test_amount_payable_is_exact_to_the_cent(old_bill, arrears, current_bill, previous_payments, expected):
    result = LedgerCalculator.compute_amount_payable(old_bill, arrears, current_bill, previous_payments)
    assert result == Decimal(expected)
    assert result.as_tuple().exponent == -2


@pytest.mark.parametrize("field", ["old_bill", "arrears", "current_bill", "previous_payments"])
def test_negative_input_rejected(field):
    values = dict(old_bill=1, arrears=1, current_bill=1, previous_payments=1)
    values[field] = "-0.01"
    with pytest.raises(InvalidAmountError) as exc_info:
        LedgerCalculator.compute_amount_payable(**values)
    assert exc_info.value.field == field
    assert isinstance(exc_info.value, PayerValidationError)


def test_non_numeric_input_rejected():
    with pytest.raises(InvalidAmountError) as exc_info:
        LedgerCalculator.validate_amount("arrears", "twelve")
    assert exc_info.value.errors == ["Arrears must be a non-negative amount."]


def test_validate_fields_collects_every_bad_field():
    cleaned, errors = LedgerCalculator.validate_fields(
        {"old_bill": "-1", "arrears": "abc", "current_bill": "5", "previous_payments": None}
    )
    assert errors == [
        "Old bill must be a non-negative amount.",
        "Arrears must be a non-negative amount.",
    ]
    assert cleaned == {"current_bill": Decimal("5.00"), "previous_payments": Decimal("0.00")}


def test_credit_balance_allowed_by_default():
    assert LedgerCalculator.credit_policy_error(Decimal("-5.00")) is None


def test_credit_balance_rejected_when_disabled():
    with patch.object(settings, "ALLOW_CREDIT_BALANCE", False):
        assert LedgerCalculator.credit_policy_error(Decimal("-0.01")) == (
            "Previous payments exceed the total amount due."
        )
        assert LedgerCalculator.credit_policy_error(Decimal("0.00")) is None


def test_apply_keeps_unspecified_fields():
    record = SimpleNamespace(
        old_bill=Decimal("50.00"),
        arrears=Decimal("20.00"),
        current_bill=Decimal("100.00"),
        previous_payments=Decimal("30.00"),
        amount_payable=Decimal("0.00"),
    )
    result = LedgerCalculator.apply(record, previous_payments=Decimal("70.00"))
    assert result == Decimal("100.00")
    assert record.amount_payable == Decimal("100.00")
    assert record.previous_payments == Decimal("70.00")
    assert record.old_bill == Decimal("50.00")


def test_apply_leaves_record_untouched_on_invalid_input():
    record = SimpleNamespace(
        old_bill=Decimal("1.00"),
        arrears=Decimal("0.00"),
        current_bill=Decimal("0.00"),
        previous_payments=Decimal("0.00"),
        amount_payable=Decimal("1.00"),
    )
    with pytest.raises(InvalidAmountError):
        LedgerCalculator.apply(record, current_bill=Decimal("-3"))
    assert record.current_bill == Decimal("0.00")
    assert record.amount_payable == Decimal("1.00")
