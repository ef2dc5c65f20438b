"""Models Package - Export all models for easy imports"""

from revenue_ledger.models.base import BaseModel, LedgerFieldsMixin, ZoneScopedMixin, StatusMixin
from revenue_ledger.models.enums import *
from revenue_ledger.models.zone import Zone, SubZone
from revenue_ledger.models.payer import AccountSequence, Business, Property
from revenue_ledger.models.fee import BusinessFee, PropertyFee
from revenue_ledger.models.billing import Bill, Payment, BillAdjustment
from revenue_ledger.models.audit import AuditLog


__all__ = [
    # Base classes
    "BaseModel",
    "LedgerFieldsMixin",
    "ZoneScopedMixin",
    "StatusMixin",
    
    # Zones
    "Zone",
    "SubZone",
    
    # Payers
    "AccountSequence",
    "Business",
    "Property",
    
    # Fee catalog
    "BusinessFee",
    "PropertyFee",
    
    # Billing
    "Bill",
    "Payment",
    "BillAdjustment",
    
    # Audit
    "AuditLog",
]
