# gatehouse/api/v1/serializers.py
"""
Model -> JSON helpers shared by the routers.
"""
from gatehouse.models.banned_device import BannedDevice
from gatehouse.models.session import Session
from gatehouse.models.waiting_list import WaitingListEntry


def _iso(value):
    return value.isoformat() if value else None


def session_to_dict(s: Session, username: str | None = None) -> dict:
    return {
        "id": str(s.id),
        "device_id": s.device_id,
        "role": s.role.value if hasattr(s.role, "value") else s.role,
        "is_banned": s.is_banned,
        "username": username,
    }


def session_admin_dict(s: Session, username: str | None = None) -> dict:
    """Session row as shown on the moderation dashboard (adds IP and timestamps)."""
    data = session_to_dict(s, username)
    data.update({
        "ip_address": s.ip_address,
        "created_at": _iso(s.created_at),
        "last_active_at": _iso(s.last_active_at),
    })
    return data


def ban_to_dict(b: BannedDevice) -> dict:
    return {
        "id": str(b.id),
        "device_id": b.device_id,
        "ip_address": b.ip_address,
        "banned_by": str(b.banned_by_id) if b.banned_by_id else None,
        "reason": b.reason,
        "banned_at": _iso(b.banned_at),
    }


def entry_to_dict(e: WaitingListEntry) -> dict:
    return {
        "id": str(e.id),
        "device_id": e.device_id,
        "ip_address": e.ip_address,
        "status": e.status.value if hasattr(e.status, "value") else e.status,
        "reviewed_by": str(e.reviewed_by_id) if e.reviewed_by_id else None,
        "reviewed_at": _iso(e.reviewed_at),
        "created_at": _iso(e.created_at),
    }
