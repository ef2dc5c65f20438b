"""Payer input validation with accumulated, ordered error messages"""

import math
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from revenue_ledger.core.exceptions import PayerValidationError
from revenue_ledger.models.enums import PayerKind, PayerStatus
from revenue_ledger.models.payer import Business
from revenue_ledger.models.zone import SubZone, Zone
from revenue_ledger.services.ledger_calculator import LedgerCalculator

TELEPHONE_PATTERN = re.compile(r"^[\+]?[0-9\-\s\(\)]+$")

REQUIRED_FIELDS = {
    PayerKind.BUSINESS: [
        ("business_name", "Business name is required."),
        ("owner_name", "Owner name is required."),
        ("business_type", "Business type is required."),
        ("category", "Business category is required."),
    ],
    PayerKind.PROPERTY: [
        ("owner_name", "Owner name is required."),
        ("structure", "Property structure is required."),
        ("property_use", "Property use is required."),
    ],
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_coordinate(value: Any, low: float, high: float) -> Optional[float]:
    """
    Parse an optional coordinate.

    Returns None for blank input. Raises ValueError when the value is not a
    finite number inside [low, high].
    """
    if _is_blank(value):
        return None
    number = float(value)
    if not math.isfinite(number) or number < low or number > high:
        raise ValueError(f"{value!r} outside [{low}, {high}]")
    return number


class PayerValidator:
    """
    Runs every payer check and reports all failures at once.

    Checks run in three passes: required fields, then formats and ranges,
    then checks that need the database (zone, sub-zone, name uniqueness)
    and the credit-balance policy.
    """

    @staticmethod
    def check_required(kind: PayerKind, values: Dict[str, Any]) -> List[str]:
        errors = [
            message
            for field, message in REQUIRED_FIELDS[kind]
            if _is_blank(values.get(field))
        ]
        if values.get("zone_id") is None:
            errors.append("Please select a zone.")
        return errors

    @staticmethod
    def check_formats(kind: PayerKind, values: Dict[str, Any], normalized: Dict[str, Any]) -> List[str]:
        errors: List[str] = []

        telephone = values.get("telephone")
        if not _is_blank(telephone) and not TELEPHONE_PATTERN.match(telephone.strip()):
            errors.append("Please enter a valid telephone number.")

        try:
            normalized["latitude"] = parse_coordinate(values.get("latitude"), -90, 90)
        except (TypeError, ValueError):
            errors.append("Latitude must be a valid number between -90 and 90.")
        try:
            normalized["longitude"] = parse_coordinate(values.get("longitude"), -180, 180)
        except (TypeError, ValueError):
            errors.append("Longitude must be a valid number between -180 and 180.")

        if kind == PayerKind.PROPERTY:
            rooms = values.get("number_of_rooms")
            if rooms is None or rooms < 1:
                errors.append("Number of rooms must be at least 1.")

        amounts, amount_errors = LedgerCalculator.validate_fields(values)
        normalized.update(amounts)
        errors.extend(amount_errors)
        return errors

    @staticmethod
    async def check_references(
        db: AsyncSession,
        kind: PayerKind,
        values: Dict[str, Any],
        exclude_id: Optional[int] = None,
    ) -> List[str]:
        errors: List[str] = []

        zone_id = values.get("zone_id")
        if zone_id is not None and await db.get(Zone, zone_id) is None:
            errors.append("Selected zone does not exist.")
        sub_zone_id = values.get("sub_zone_id")
        if sub_zone_id is not None:
            sub_zone = await db.get(SubZone, sub_zone_id)
            if sub_zone is None:
                errors.append("Selected sub-zone does not exist.")
            elif zone_id is not None and sub_zone.zone_id != zone_id:
                errors.append("Selected sub-zone does not belong to the selected zone.")

        if kind == PayerKind.BUSINESS and not _is_blank(values.get("business_name")):
            query = select(func.count(Business.id)).where(
                Business.business_name == values["business_name"].strip(),
                Business.status == PayerStatus.ACTIVE,
            )
            if exclude_id is not None:
                query = query.where(Business.id != exclude_id)
            if (await db.execute(query)).scalar_one() > 0:
                errors.append("A business with this name already exists.")
        return errors

    @staticmethod
    async def validate(
        db: AsyncSession,
        kind: PayerKind,
        values: Dict[str, Any],
        exclude_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Validate a full set of payer field values.

        Args:
            db: Database session
            kind: Business or Property
            values: Field values after merging any partial update
            exclude_id: The payer's own id on update, skipped by the uniqueness check

        Returns:
            Normalized coordinates and ledger amounts, plus amount_payable

        Raises:
            PayerValidationError: with every message collected
        """
        normalized: Dict[str, Any] = {}
        errors = PayerValidator.check_required(kind, values)
        errors.extend(PayerValidator.check_formats(kind, values, normalized))
        errors.extend(await PayerValidator.check_references(db, kind, values, exclude_id))

        amounts = [normalized.get(field) for field in ("old_bill", "arrears", "current_bill", "previous_payments")]
        if None not in amounts:
            amount_payable = LedgerCalculator.compute_amount_payable(*amounts)
            credit_error = LedgerCalculator.credit_policy_error(amount_payable)
            if credit_error:
                errors.append(credit_error)
            normalized["amount_payable"] = amount_payable

        if errors:
            raise PayerValidationError(errors)
        return normalized
