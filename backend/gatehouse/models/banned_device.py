import uuid
from tortoise import fields, models


class BannedDevice(models.Model):
    """
    Ban record.
    - device_id: banned device identifier, unique (one row per device)
    - ip_address: when set, the ban also applies to every device seen at this IP
    - banned_by: session that issued the ban (kept null if that session is later deleted)
    - reason: optional free text
    - banned_at: creation time

    Presence of a row is authoritative; sessions.is_banned is only a cache.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    device_id = fields.CharField(max_length=128, unique=True, index=True)
    ip_address = fields.CharField(max_length=64, null=True, index=True)
    banned_by = fields.ForeignKeyField(
        "models.Session", related_name="bans_issued", null=True, on_delete=fields.SET_NULL
    )
    reason = fields.CharField(max_length=255, null=True)
    banned_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "banned_devices"
