"""
Database model for chat messages.
Messages are never removed by moderation: deletion is a soft delete
(deleted_at), and hiding is a per-viewer list of session ids.
"""
import uuid
from tortoise import fields, models


class ChatMessage(models.Model):
    """
    Chat message database model.

    Visibility for a viewer is evaluated at read time:
        deleted_at is null AND viewer session id not in hidden_for_session_ids
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    session = fields.ForeignKeyField(
        "models.Session", related_name="messages", on_delete=fields.CASCADE
    )  # Author
    message = fields.CharField(max_length=500)
    created_at = fields.DatetimeField(auto_now_add=True, index=True)
    deleted_at = fields.DatetimeField(null=True)  # Soft delete for everyone
    deleted_by = fields.ForeignKeyField(
        "models.Session", related_name="messages_deleted", null=True, on_delete=fields.SET_NULL
    )
    hidden_for_session_ids = fields.JSONField(default=list)  # list[str] of session UUIDs

    class Meta:
        table = "chat_messages"
        ordering = ["created_at"]

    def is_visible_to(self, viewer_session_id: str) -> bool:
        if self.deleted_at is not None:
            return False
        return str(viewer_session_id) not in (self.hidden_for_session_ids or [])
