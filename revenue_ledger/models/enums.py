"""Centralized Enum Definitions"""

import enum


# Payers
class PayerKind(str, enum.Enum):
    """Concrete payer shapes sharing the ledger fields"""
    BUSINESS = "Business"
    PROPERTY = "Property"


class PayerStatus(str, enum.Enum):
    """Payer lifecycle status; any-to-any transitions"""
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    SUSPENDED = "Suspended"


class PropertyUse(str, enum.Enum):
    """Property use, second key of the property fee catalog"""
    COMMERCIAL = "Commercial"
    RESIDENTIAL = "Residential"


# Billing
class BillStatus(str, enum.Enum):
    """Bill lifecycle status"""
    PENDING = "Pending"
    SERVED = "Served"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentStatus(str, enum.Enum):
    """Payment status; only SUCCESSFUL reduces a balance"""
    SUCCESSFUL = "Successful"
    PENDING = "Pending"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


class PaymentMethod(str, enum.Enum):
    """Accepted payment channels"""
    CASH = "Cash"
    MOBILE_MONEY = "Mobile Money"
    BANK_TRANSFER = "Bank Transfer"
    ONLINE = "Online"
    CHEQUE = "Cheque"


class AdjustmentType(str, enum.Enum):
    """Single-bill or bulk adjustment"""
    SINGLE = "Single"
    BULK = "Bulk"


class AdjustmentMethod(str, enum.Enum):
    """How adjustment_value is applied"""
    FIXED_AMOUNT = "Fixed Amount"
    PERCENTAGE = "Percentage"


class AdjustableField(str, enum.Enum):
    """Ledger fields an adjustment may change"""
    OLD_BILL = "old_bill"
    ARREARS = "arrears"
    CURRENT_BILL = "current_bill"


# Audit
class AuditAction(str, enum.Enum):
    """Kinds of audit entries written by the ledger core"""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    HARD_DELETE = "HARD_DELETE"
    BILL_GENERATED = "BILL_GENERATED"
    BILL_ADJUSTED = "BILL_ADJUSTED"
    PAYMENT_RECORDED = "PAYMENT_RECORDED"
    IMPORT_FEES = "IMPORT_FEES"
    DELETE_ZONE = "DELETE_ZONE"
    DELETE_SUB_ZONE = "DELETE_SUB_ZONE"
