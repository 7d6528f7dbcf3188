"""
Database model for the admission waiting list.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class WaitingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class WaitingListEntry(models.Model):
    """
    Pending admission request for a non-owner device.

    Transitions: pending -> approved | denied, written only by an owner review.
    device_id is unique so concurrent first attempts cannot queue twice.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    device_id = fields.CharField(max_length=128, unique=True, index=True)
    ip_address = fields.CharField(max_length=64, null=True)
    status = fields.CharEnumField(WaitingStatus, max_length=16, default=WaitingStatus.PENDING)
    reviewed_by = fields.ForeignKeyField(
        "models.Session", related_name="reviews", null=True, on_delete=fields.SET_NULL
    )
    reviewed_at = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "waiting_list"
