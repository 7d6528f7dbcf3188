# gatehouse/api/v1/deps.py
from fastapi import Query, Request
from gatehouse.core.security import client_ip
from gatehouse.models.session import Session
from gatehouse.services.sessions import require_active_session

async def resolve_caller(request: Request, device_id: str, *, check_site: bool = True) -> Session:
    """
    Resolve the calling session for a protected operation.

    The device id is the only thing the client asserts; role and ban status
    are read fresh from the database on every call.

    Args:
        request: FastAPI Request object (for the client IP)
        device_id: Device identifier sent by the client
        check_site: Whether the site switch applies (False for owner-facing
                    reads that must keep working while the site is off)

    Returns:
        Session: The caller's session

    Raises:
        NotAuthenticated (401): No session for this device (AUTH_REQUIRED)
        Forbidden (403): Device/IP banned (DEVICE_BANNED / IP_BANNED)
        Forbidden (403): Site disabled for non-owners (SITE_DISABLED)
    """
    return await require_active_session(device_id, client_ip(request), check_site=check_site)

async def get_caller(
    request: Request,
    device_id: str = Query(min_length=1, max_length=128),
) -> Session:
    """
    FastAPI dependency for GET endpoints that take the device id as a query
    parameter.

    Usage:
        @router.get("/protected")
        async def protected_route(caller: Session = Depends(get_caller)):
            return {"session_id": str(caller.id)}
    """
    return await resolve_caller(request, device_id)
