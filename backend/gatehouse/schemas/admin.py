"""
Pydantic schemas for moderation endpoints (bans, session removal, roles).
"""
from pydantic import Field

from .auth import DeviceIn

class TargetIn(DeviceIn):
    """
    Base request model for operations aimed at another device.
    """
    target_device_id: str = Field(min_length=1, max_length=128)  # Device the operation applies to

class BanIn(TargetIn):
    """
    Request model for banning a device.
    ban_ip also records the target's last known IP so new device ids from the
    same network are rejected too.
    """
    ban_ip: bool = False
    reason: str | None = Field(default=None, max_length=255)

class ChangeRoleIn(TargetIn):
    """
    Request model for the owner-only role change.
    Validated in the service so that "owner" is refused as 403, not 400.
    """
    new_role: str = Field(min_length=1)
