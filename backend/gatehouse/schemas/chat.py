"""
Pydantic schemas for chat and moderation actions.
"""
from pydantic import Field

from .auth import DeviceIn

class SendMessageIn(DeviceIn):
    """
    Request model for posting a chat message.
    Length is checked after trimming in the service.
    """
    message: str = Field(min_length=1)

class MessageActionIn(DeviceIn):
    """
    Request model for a moderation action on one message.
    """
    action: str = Field(min_length=1)  # "undo", "hide" or "delete"
