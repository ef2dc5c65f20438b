"""Ledger error taxonomy.

Every failure a ledger operation can report to its caller is one of the
classes below. Storage errors are only ever raised after the enclosing
transaction has been rolled back.
"""

from typing import Any, List, Optional


class LedgerError(Exception):
    """Base class for all errors raised by the ledger core"""

    code = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PayerValidationError(LedgerError):
    """User input failed required/format/range/uniqueness checks.

    Carries every message collected, in the order the checks ran.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class InvalidAmountError(PayerValidationError):
    """A monetary input was negative or not a number"""

    code = "INVALID_AMOUNT"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        label = field.replace("_", " ").capitalize()
        super().__init__([f"{label} must be a non-negative amount."])


class NotFoundError(LedgerError):
    """Referenced payer, bill, zone, sub-zone or fee does not exist"""

    code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None, message: Optional[str] = None):
        self.resource = resource
        self.identifier = identifier
        if message is None:
            message = f"{resource} not found." if identifier is None else f"{resource} {identifier} not found."
        super().__init__(message)


class ConflictError(LedgerError):
    """Persisted state no longer matches what the caller expected"""

    code = "CONFLICT"


class StorageFailureError(LedgerError):
    """The underlying transaction could not complete and was rolled back"""

    code = "STORAGE_FAILURE"
    user_message = "The operation could not be completed. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


class StorageTimeoutError(StorageFailureError):
    """The transaction exceeded the statement or transaction timeout"""

    code = "STORAGE_TIMEOUT"
    user_message = "The operation timed out. Please try again."


class AuditWriteFailure(LedgerError):
    """Internal only: an audit entry could not be written"""

    code = "AUDIT_WRITE_FAILURE"
