# gatehouse/services/site_switch.py
"""
Site availability switch: one global boolean, owner-writable.
"""
import logging

from gatehouse.core.pubsub import CLOSE_FORBIDDEN, chat_channel
from gatehouse.models.session import Role, Session
from gatehouse.models.site_setting import SiteSetting, SITE_ENABLED_KEY
from gatehouse.services.privileges import Operation, ensure_allowed

logger = logging.getLogger("uvicorn.error")


async def is_site_enabled() -> bool:
    """Read the flag; a missing row (or malformed value) means enabled."""
    row = await SiteSetting.get_or_none(key=SITE_ENABLED_KEY)
    if row is None or not isinstance(row.value, dict):
        return True
    return bool(row.value.get("enabled", True))


async def site_open_for(role: Role) -> bool:
    """Owners always pass; everyone else only while the site is enabled."""
    if Role(role) == Role.OWNER:
        return True
    return await is_site_enabled()


async def _close_non_owner_sockets() -> None:
    subscribed = chat_channel.session_ids()
    if not subscribed:
        return
    ids = await Session.filter(id__in=subscribed).exclude(role=Role.OWNER).values_list("id", flat=True)
    for sid in ids:
        await chat_channel.disconnect(str(sid), CLOSE_FORBIDDEN)


async def set_site_enabled(actor: Session, enabled: bool) -> bool:
    """
    Owner-only write of the flag.

    Returns:
        The new value
    """
    ensure_allowed(actor.role, Operation.TOGGLE_SITE)
    row, created = await SiteSetting.get_or_create(
        key=SITE_ENABLED_KEY,
        defaults={"value": {"enabled": enabled}, "updated_by": actor},
    )
    if not created:
        row.value = {"enabled": enabled}
        row.updated_by = actor
        await row.save()
    if not enabled:
        await _close_non_owner_sockets()
    logger.info("[site] enabled=%s by session=%s", enabled, actor.id)
    return enabled
