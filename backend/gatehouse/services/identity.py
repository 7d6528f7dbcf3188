# gatehouse/services/identity.py
import uuid

from gatehouse.models.session import Session


async def resolve_session(device_id: str | None) -> Session | None:
    """
    Map a device identifier to its session.

    Returns None for an unknown (or empty) device id: that is the anonymous
    state, not an error. Callers decide what "no session" means for them.
    """
    if not device_id:
        return None
    return await Session.get_or_none(device_id=device_id)


def parse_id(raw) -> uuid.UUID | None:
    """Parse a client-supplied primary key; None if it is not a UUID."""
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        return None
