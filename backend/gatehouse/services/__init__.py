"""
Services Module

Access-control core, one module per component:
- identity: device id -> session lookup
- ban_guard: device / IP ban checks and the ban write path
- waiting_list: admission queue for first-time non-owner devices
- privileges: the single role/privilege table
- sessions: authentication and session lifecycle
- moderation: chat posting, visibility and undo/hide/delete
- site_switch: global availability flag
- usernames: display-name policy
"""
