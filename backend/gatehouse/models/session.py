"""
Database model for device sessions.
A session binds an opaque, client-generated device identifier to a role and
a (cached) ban status. There are no user accounts: the device is the identity.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class Role(str, Enum):
    """Privilege tiers, in strictly increasing order."""
    USER = "user"
    ADMIN = "admin"
    OWNER = "owner"


class Session(models.Model):
    """
    Session database model.

    Relationships:
    - Has zero or one Profile (via related_name="profile")
    - Has many ChatMessages (via related_name="messages")

    Invariants:
    - device_id is unique: at most one session per device. The constraint lives
      in the database so concurrent first logins cannot both insert.
    - role is only written by authentication (derived from the credential tier)
      and by the owner-only role change operation.
    - is_banned mirrors the presence of a banned_devices row and is kept in sync
      by the ban write path.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique session identifier
    device_id = fields.CharField(max_length=128, unique=True, index=True)  # Opaque client token
    role = fields.CharEnumField(Role, max_length=8, default=Role.USER)
    is_banned = fields.BooleanField(default=False)  # Cache of the ban rows, never the source of truth
    ip_address = fields.CharField(max_length=64, null=True)  # Last observed client IP
    created_at = fields.DatetimeField(auto_now_add=True)
    last_active_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "sessions"  # Database table name
