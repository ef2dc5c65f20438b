"""API Dependencies"""

from typing import Optional
from fastapi import Header, HTTPException, Request, status

from revenue_ledger.database import get_db
from revenue_ledger.schemas.context import Actor, RequestOrigin

__all__ = ["get_db", "get_actor", "get_origin"]


async def get_actor(
    x_actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    x_actor_name: Optional[str] = Header(None, alias="X-Actor-Name"),
) -> Actor:
    """
    Acting user, as asserted by the upstream auth collaborator.

    Raises:
        HTTPException: 401 if the request carries no actor id
    """
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Actor-Id header",
        )
    return Actor(id=x_actor_id.strip(), display_name=(x_actor_name or "").strip())


async def get_origin(request: Request) -> RequestOrigin:
    """Client IP and user agent for the audit trail"""
    return RequestOrigin(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
