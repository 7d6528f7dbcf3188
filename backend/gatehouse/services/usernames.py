# gatehouse/services/usernames.py
"""
Display-name policy for profiles.
"""
import re

RESERVED_WORDS = ("admin", "owner", "system", "bot", "moderator", "mod", "support", "official")

USERNAME_MIN = 2
USERNAME_MAX = 20

_ALLOWED = re.compile(r"^[A-Za-z0-9 _-]+$")
_MULTI_SPACE = re.compile(r"\s{2,}")


def username_error(username: str) -> str | None:
    """
    Return a human-readable reason the username is rejected, or None if valid.
    The username is trimmed before checking.
    """
    trimmed = (username or "").strip()
    if len(trimmed) < USERNAME_MIN or len(trimmed) > USERNAME_MAX:
        return f"Username must be {USERNAME_MIN}-{USERNAME_MAX} characters"
    if not _ALLOWED.match(trimmed):
        return "Username can only contain letters, numbers, spaces, _ and -"
    if _MULTI_SPACE.search(trimmed):
        return "No multiple consecutive spaces allowed"
    lowered = trimmed.lower()
    if any(word in lowered for word in RESERVED_WORDS):
        return "Username contains reserved words"
    return None


def is_valid_username(username: str) -> bool:
    return username_error(username) is None
