import uuid
from tortoise import fields, models

SITE_ENABLED_KEY = "site_enabled"


class SiteSetting(models.Model):
    """
    Global key/value setting. The only key in use is "site_enabled" whose
    value is {"enabled": bool}; a missing row means enabled.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    key = fields.CharField(max_length=64, unique=True)
    value = fields.JSONField(default=dict)
    updated_at = fields.DatetimeField(auto_now=True)
    updated_by = fields.ForeignKeyField(
        "models.Session", related_name="settings_updated", null=True, on_delete=fields.SET_NULL
    )

    class Meta:
        table = "site_settings"
