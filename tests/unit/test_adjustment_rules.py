"""Unit tests for bill adjustment input rules."""

import pytest
from decimal import Decimal

from revenue_ledger.core.exceptions import PayerValidationError
from revenue_ledger.models.enums import AdjustableField, AdjustmentMethod
from revenue_ledger.schemas.billing import AdjustmentCreate
from revenue_ledger.services.adjustment_service import AdjustmentService, adjusted_value


def test_validate_returns_enums():
    method, field = AdjustmentService.validate(
        AdjustmentCreate(
            adjustment_method="Percentage",
            adjustment_value=Decimal("10"),
            target_field="arrears",
            reason="Waiver approved by assembly",
        )
    )
    assert method is AdjustmentMethod.PERCENTAGE
    assert field is AdjustableField.ARREARS


def test_validate_reports_every_problem():
    with pytest.raises(PayerValidationError) as exc_info:
        AdjustmentService.validate(AdjustmentCreate(adjustment_method="Discount", target_field="amount_payable"))
    assert exc_info.value.errors == [
        "Please select a valid adjustment method.",
        "Please enter a valid adjustment value.",
        "Please select a valid field to adjust.",
        "Please provide a reason for this adjustment.",
    ]


def test_percentage_cannot_exceed_hundred():
    with pytest.raises(PayerValidationError) as exc_info:
        AdjustmentService.validate(
            AdjustmentCreate(
                adjustment_method="Percentage",
                adjustment_value=Decimal("150"),
                target_field="current_bill",
                reason="Typo",
            )
        )
    assert exc_info.value.errors == ["Percentage adjustment cannot exceed 100%."]


def test_fixed_amount_may_be_negative():
    method, _ = AdjustmentService.validate(
        AdjustmentCreate(
            adjustment_method="Fixed Amount",
            adjustment_value=Decimal("-25"),
            target_field="old_bill",
            reason="Duplicate charge",
        )
    )
    assert method is AdjustmentMethod.FIXED_AMOUNT


@pytest.mark.parametrize(
    "current, method, value, expected",
    [
        ("100.00", AdjustmentMethod.FIXED_AMOUNT, "25.00", "125.00"),
        ("100.00", AdjustmentMethod.FIXED_AMOUNT, "-150.00", "0.00"),
        ("80.00", AdjustmentMethod.PERCENTAGE, "12.5", "90.00"),
        ("0.00", AdjustmentMethod.PERCENTAGE, "50", "0.00"),
    ],
)
def test_adjusted_value(current, method, value, expected):
    assert adjusted_value(Decimal(current), method, Decimal(value)) == Decimal(expected)
