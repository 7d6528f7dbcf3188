# gatehouse/api/v1/routers/admin.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from gatehouse.api.v1.deps import get_caller, resolve_caller
from gatehouse.api.v1.serializers import ban_to_dict, session_admin_dict, session_to_dict
from gatehouse.models.session import Session
from gatehouse.schemas.admin import BanIn, ChangeRoleIn, TargetIn
from gatehouse.services import ban_guard
from gatehouse.services import sessions as session_service
from gatehouse.services.moderation import message_to_dict

router = APIRouter(prefix="/admin", tags=["admin"])


# ==============================================================================
# I. Bans
#     Prefix: /api/v1/admin/ban, /api/v1/admin/unban
# ==============================================================================
@router.post("/ban")
async def ban_device(body: BanIn, request: Request):
    """
    Ban a device (admin or owner).

    Admins may ban users; owners may ban users and admins; nobody may ban an
    owner or themselves. With ban_ip the target's last known IP is banned too.

    Args:
        body: Request body containing:
            - device_id: str (caller)
            - target_device_id: str (device to ban)
            - ban_ip: bool (also ban the target's last known IP)
            - reason: str | None

    Returns:
        dict: {"success": True, "data": {"ban": {...}}}

    Error codes:
        - CANNOT_TARGET_SELF / INSUFFICIENT_ROLE / TARGET_ROLE_TOO_HIGH /
          TARGET_IS_OWNER (403)
        - TARGET_NOT_FOUND (404)
        - ALREADY_BANNED / IP_UNKNOWN (400)
    """
    caller = await resolve_caller(request, body.device_id)
    row = await ban_guard.ban_device(
        caller, body.target_device_id, ban_ip=body.ban_ip, reason=body.reason
    )
    return {"success": True, "data": {"ban": ban_to_dict(row)}, "message": "Device banned"}


@router.post("/unban")
async def unban_device(body: TargetIn, request: Request):
    """
    Lift a device ban (admin or owner).

    Error codes:
        - INSUFFICIENT_ROLE (403)
        - NOT_BANNED (404)
    """
    caller = await resolve_caller(request, body.device_id)
    await ban_guard.unban_device(caller, body.target_device_id)
    return {"success": True, "message": "Device unbanned"}


# ==============================================================================
# II. Sessions
#     Prefix: /api/v1/admin/sessions, /api/v1/admin/role, /api/v1/admin/overview
# ==============================================================================
@router.post("/sessions/delete")
async def delete_session(body: TargetIn, request: Request):
    """
    Remove another device's session (admin or owner).

    Uses the same target rules as banning: admins may remove user sessions,
    owners user and admin sessions, and owner sessions are never removed.
    """
    caller = await resolve_caller(request, body.device_id)
    await session_service.delete_session(caller, body.target_device_id)
    return {"success": True, "message": "Session deleted"}


@router.post("/role")
async def change_role(body: ChangeRoleIn, request: Request):
    """
    Switch a session between user and admin (owner only).

    Error codes:
        - INVALID_ROLE (400): new_role is not a role name
        - OWNER_ROLE_FIXED (403): new_role is "owner"
        - CANNOT_TARGET_SELF / INSUFFICIENT_ROLE / TARGET_IS_OWNER (403)
        - TARGET_NOT_FOUND (404)
    """
    caller = await resolve_caller(request, body.device_id)
    target = await session_service.change_role(caller, body.target_device_id, body.new_role)
    return {"success": True,
            "data": {"session": session_to_dict(target)},
            "message": f"Role changed to {target.role.value}"}


@router.get("/overview")
async def overview(caller: Session = Depends(get_caller)):
    """
    Moderation dashboard data (admin or owner): sessions by last activity,
    ban rows, the latest chat messages (including soft-deleted ones) and
    display names.
    """
    data = await session_service.admin_overview(caller)
    names = data.usernames
    return {"success": True,
            "data": {
                "sessions": [session_admin_dict(s, names.get(str(s.id))) for s in data.sessions],
                "bannedDevices": [ban_to_dict(b) for b in data.banned_devices],
                "chatMessages": [message_to_dict(m, names.get(str(m.session_id))) for m in data.messages],
            }}
