"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- Session: device-identified session with role and cached ban flag
- Profile: display name, one per session
- BannedDevice: device / IP ban rows
- WaitingListEntry: admission queue for first-time non-owner devices
- ChatMessage: chat entry with soft delete and per-viewer hide
- SiteSetting: global settings (site availability switch)
"""
from .session import Session, Role
from .profile import Profile
from .banned_device import BannedDevice
from .waiting_list import WaitingListEntry, WaitingStatus
from .chat_message import ChatMessage
from .site_setting import SiteSetting, SITE_ENABLED_KEY
