# gatehouse/api/v1/routers/auth.py
from fastapi import APIRouter, Request
from gatehouse.api.v1.deps import resolve_caller
from gatehouse.api.v1.serializers import session_to_dict
from gatehouse.core.security import client_ip
from gatehouse.schemas.auth import AuthenticateIn, DeviceIn, SetUsernameIn
from gatehouse.services import sessions as session_service
from gatehouse.services.identity import resolve_session
from gatehouse.services.privileges import capabilities
from gatehouse.services.site_switch import is_site_enabled

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/authenticate")
async def authenticate(body: AuthenticateIn, request: Request):
    """
    Log a device in with one of the tier credentials.

    The role is derived from which tier secret matched; the client never
    chooses it. First-time non-owner devices are queued on the waiting list
    instead of receiving a session.

    Args:
        body: Request body containing:
            - credential: str (tier secret; "password" also accepted)
            - device_id: str (opaque client device token)
        request: FastAPI Request object (for the client IP)

    Returns:
        dict: One of
            - success: {"success": True, "data": {"session": {...},
              "needsUsername": bool, "siteEnabled": bool, "capabilities": {...}}}
            - waiting: {"success": True, "data": {"waiting": True, "message": str}}

    Error codes:
        - BAD_REQUEST (400): missing credential or device_id
        - AUTH_INVALID_CREDENTIALS (401): credential matches no tier
        - DEVICE_BANNED / IP_BANNED (403): ban guard matched
        - WAITING_LIST_DENIED (403): the device's access request was denied
    """
    result = await session_service.authenticate(body.credential, body.device_id, client_ip(request))
    if result.state == session_service.AuthState.DENIED:
        raise result.error
    if result.state == session_service.AuthState.WAITING:
        return {"success": True, "data": {"waiting": True, "message": result.message}}
    session = result.session
    return {"success": True,
            "data": {"session": session_to_dict(session, result.username),
                     "needsUsername": result.needs_username,
                     "siteEnabled": await is_site_enabled(),
                     "capabilities": capabilities(session.role)}}

@router.post("/session")
async def current_session(body: DeviceIn, request: Request):
    """
    Validate the caller's existing session (e.g. on page load).

    Re-checks bans and the site switch, refreshes last activity, and returns
    the same session payload as a successful login.

    Raises:
        AUTH_REQUIRED (401): no session for this device
        DEVICE_BANNED / IP_BANNED (403): ban guard matched
        SITE_DISABLED (403): site switched off and caller is not an owner
    """
    ip = client_ip(request)
    session = await resolve_caller(request, body.device_id)
    await session_service.touch(session, ip)
    username = await session_service.username_for(session)
    return {"success": True,
            "data": {"session": session_to_dict(session, username),
                     "needsUsername": username is None,
                     "capabilities": capabilities(session.role)}}

@router.post("/username")
async def set_username(body: SetUsernameIn, request: Request):
    """
    Set or change the caller's display name.

    Error codes:
        - INVALID_USERNAME (400): 2-20 chars of letters, digits, space, _ or -,
          no double spaces, no reserved words
        - AUTH_REQUIRED (401) / DEVICE_BANNED (403) / SITE_DISABLED (403)
    """
    session = await resolve_caller(request, body.device_id)
    username = await session_service.set_username(session, body.username)
    return {"success": True, "data": {"username": username}}

@router.post("/logout")
async def logout(body: DeviceIn):
    """
    Log out the current device.

    Logout is client-local: the client discards its device id. The server
    keeps the session row (it is removed only by a moderator), so this
    endpoint always returns success, even for unknown devices.
    """
    session = await resolve_session(body.device_id)
    return {"success": True, "data": {"hadSession": session is not None}}
