"""
Database model for profiles (chosen display names).
"""
import uuid
from tortoise import fields, models


class Profile(models.Model):
    """
    One-to-one extension of Session holding the display name.
    Deleted together with its session (cascade).
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    session = fields.OneToOneField(
        "models.Session",
        related_name="profile",
        on_delete=fields.CASCADE,
    )  # Exactly zero or one profile per session
    username = fields.CharField(max_length=20)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "profiles"
