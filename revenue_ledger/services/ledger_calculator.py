"""Ledger Calculator - pure balance arithmetic"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from revenue_ledger.config import settings
from revenue_ledger.core.exceptions import InvalidAmountError
from revenue_ledger.utils.money import to_money

LEDGER_FIELDS = ("old_bill", "previous_payments", "arrears", "current_bill")


class LedgerCalculator:
    """Derives and validates amount_payable; no I/O, no side effects"""

    @staticmethod
    def validate_amount(field: str, value: Any) -> Decimal:
        """
        Normalize one ledger input to cents.

        Raises:
            InvalidAmountError: value is negative or not a number
        """
        try:
            amount = to_money(value)
        except ValueError as exc:
            raise InvalidAmountError(field, value) from exc
        if amount < 0:
            raise InvalidAmountError(field, value)
        return amount

    @staticmethod
    def compute_amount_payable(
        old_bill: Any,
        arrears: Any,
        current_bill: Any,
        previous_payments: Any,
    ) -> Decimal:
        """
        amount_payable = old_bill + arrears + current_bill - previous_payments

        Every input is checked before anything is computed. The result may be
        negative (a credit balance); see credit_policy_error.
        """
        old_bill = LedgerCalculator.validate_amount("old_bill", old_bill)
        arrears = LedgerCalculator.validate_amount("arrears", arrears)
        current_bill = LedgerCalculator.validate_amount("current_bill", current_bill)
        previous_payments = LedgerCalculator.validate_amount("previous_payments", previous_payments)
        return to_money(old_bill + arrears + current_bill - previous_payments)

    @staticmethod
    def validate_fields(values: Dict[str, Any]) -> Tuple[Dict[str, Decimal], List[str]]:
        """
        Check all four ledger inputs, collecting one message per bad field.

        Returns:
            Tuple of (normalized amounts for the valid fields, error messages)
        """
        cleaned: Dict[str, Decimal] = {}
        errors: List[str] = []
        for field in LEDGER_FIELDS:
            try:
                cleaned[field] = LedgerCalculator.validate_amount(field, values.get(field))
            except InvalidAmountError as exc:
                errors.extend(exc.errors)
        return cleaned, errors

    @staticmethod
    def credit_policy_error(amount_payable: Decimal) -> Optional[str]:
        """Message when a negative balance is not allowed, else None"""
        if amount_payable < 0 and not settings.ALLOW_CREDIT_BALANCE:
            return "Previous payments exceed the total amount due."
        return None

    @staticmethod
    def apply(record: Any, **values: Any) -> Decimal:
        """
        Write ledger inputs onto a payer or bill and recompute amount_payable.

        Fields not passed keep their current value on ``record``.

        Returns:
            The new amount_payable
        """
        merged = {field: values.get(field, getattr(record, field)) for field in LEDGER_FIELDS}
        amount_payable = LedgerCalculator.compute_amount_payable(
            merged["old_bill"],
            merged["arrears"],
            merged["current_bill"],
            merged["previous_payments"],
        )
        for field in LEDGER_FIELDS:
            setattr(record, field, to_money(merged[field]))
        record.amount_payable = amount_payable
        return amount_payable
