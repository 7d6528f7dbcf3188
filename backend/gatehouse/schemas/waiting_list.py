"""
Pydantic schemas for waiting-list endpoints.
"""
from pydantic import Field

from .auth import DeviceIn

class ReviewIn(DeviceIn):
    """
    Request model for an owner decision on a waiting-list entry.
    """
    decision: str = Field(min_length=1)  # "approve" or "deny"
