"""
Pydantic schemas for the site availability switch.
"""
from .auth import DeviceIn

class ToggleSiteIn(DeviceIn):
    """
    Request model for turning the site on or off (owner only).
    """
    enabled: bool
