"""API V1 Router"""

from fastapi import APIRouter

# Import endpoint routers
from revenue_ledger.api.v1.endpoints import audit, bills, fees, payers, zones

# Create API v1 router
api_router = APIRouter()

# Include endpoint routers with prefixes and tags
api_router.include_router(payers.business_router, prefix="/businesses", tags=["Businesses"])
api_router.include_router(payers.property_router, prefix="/properties", tags=["Properties"])
api_router.include_router(payers.accounts_router, prefix="/accounts", tags=["Accounts"])
api_router.include_router(bills.router, prefix="/bills", tags=["Billing"])
api_router.include_router(fees.router, prefix="/fees", tags=["Fee Catalog"])
api_router.include_router(zones.router, prefix="/zones", tags=["Zones"])
api_router.include_router(audit.router, prefix="/audit-logs", tags=["Audit"])
