# gatehouse/core/bootstrap.py
"""
Bootstrap module for application initialization.
Seeds the site availability switch and reports missing tier credentials on
first startup.
"""
import logging
from gatehouse.core.security import get_keyring
from gatehouse.models.site_setting import SITE_ENABLED_KEY, SiteSetting

logger = logging.getLogger("uvicorn.error")

async def ensure_site_settings() -> None:
    """
    Make sure the site switch row exists (enabled by default).

    Only creates the row when it is missing; an owner's earlier choice is
    never overwritten on restart.
    """
    _, created = await SiteSetting.get_or_create(
        key=SITE_ENABLED_KEY, defaults={"value": {"enabled": True}}
    )
    if created:
        logger.warning("[bootstrap] Seeded site switch -> enabled")

def check_credentials() -> None:
    """
    Build the tier keyring once at startup so a missing OWNER_PASSWORD /
    ADMIN_PASSWORD / USER_PASSWORD shows up in the log before the first login.
    """
    keyring = get_keyring()
    if not keyring.configured_tiers:
        logger.warning("[bootstrap] No tier credentials configured -> every login will fail.")
