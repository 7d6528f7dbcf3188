# gatehouse/services/ban_guard.py
"""
Ban guard: read-side checks and the privileged ban/unban write path.

Ban rows are authoritative. sessions.is_banned is a cache written in the same
transaction as the ban row, so readers may consult either; the guard itself
always reads the rows.
"""
import logging
from dataclasses import dataclass

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from gatehouse.core.errors import BadRequest, Forbidden, NotFound
from gatehouse.core.pubsub import CLOSE_FORBIDDEN, chat_channel
from gatehouse.models.banned_device import BannedDevice
from gatehouse.models.session import Role, Session
from gatehouse.models.waiting_list import WaitingListEntry
from gatehouse.services.privileges import Operation, ensure_allowed

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class BanCheck:
    banned: bool
    reason: str | None = None  # "device" or "ip"

    def error(self) -> Forbidden:
        """The 403 surfaced to a caller this check blocked."""
        if self.reason == "ip":
            return Forbidden("Your network has been banned", code="IP_BANNED")
        return Forbidden("Your device has been banned", code="DEVICE_BANNED")


NOT_BANNED = BanCheck(False)


async def check_ban(device_id: str, ip_address: str | None = None) -> BanCheck:
    """
    Check the device id and (optionally) the observed IP against the ban rows.
    Either match blocks. Never cached: bans can change between requests.
    """
    if await BannedDevice.filter(device_id=device_id).exists():
        return BanCheck(True, "device")
    if ip_address and await BannedDevice.filter(ip_address=ip_address).exists():
        return BanCheck(True, "ip")
    return NOT_BANNED


async def _target_role_and_ip(target_device_id: str) -> tuple[Session | None, Role, str | None]:
    """
    Resolve what we know about a ban target. A device that only sits on the
    waiting list has no session and is treated as a user.
    """
    target = await Session.get_or_none(device_id=target_device_id)
    if target is not None:
        return target, target.role, target.ip_address
    entry = await WaitingListEntry.get_or_none(device_id=target_device_id)
    if entry is not None:
        return None, Role.USER, entry.ip_address
    raise NotFound("Target device not found", code="TARGET_NOT_FOUND")


async def _close_sockets(device_id: str, ip_address: str | None) -> None:
    """
    Close the open chat sockets of a banned device and, for an IP ban, of
    every non-owner session last seen on that address.
    """
    ids = set(await Session.filter(device_id=device_id).values_list("id", flat=True))
    if ip_address:
        ids.update(
            await Session.filter(ip_address=ip_address)
            .exclude(role=Role.OWNER)
            .values_list("id", flat=True)
        )
    for sid in ids:
        await chat_channel.disconnect(str(sid), CLOSE_FORBIDDEN)


async def ban_device(
    actor: Session,
    target_device_id: str,
    *,
    ban_ip: bool = False,
    reason: str | None = None,
) -> BannedDevice:
    """
    Ban a device (and optionally its last known IP).

    The ban row and the session flag are written in one transaction.

    Raises:
        Forbidden: self-ban, insufficient role, or owner target
        NotFound: target device has neither a session nor a waiting-list entry
        BadRequest: target already banned, or ban_ip requested with no known IP
    """
    # Self-target and role floor first, so plain users learn nothing about targets
    ensure_allowed(actor.role, Operation.BAN, Role.USER, is_self=target_device_id == actor.device_id)

    target, target_role, target_ip = await _target_role_and_ip(target_device_id)
    ensure_allowed(actor.role, Operation.BAN, target_role)

    if ban_ip and not target_ip:
        raise BadRequest("No IP address is known for this device", code="IP_UNKNOWN")
    if await BannedDevice.filter(device_id=target_device_id).exists():
        raise BadRequest("Device is already banned", code="ALREADY_BANNED")

    try:
        async with in_transaction() as conn:
            row = await BannedDevice.create(
                device_id=target_device_id,
                ip_address=target_ip if ban_ip else None,
                banned_by=actor,
                reason=reason,
                using_db=conn,
            )
            await Session.filter(device_id=target_device_id).using_db(conn).update(is_banned=True)
    except IntegrityError:
        # Lost a race with a concurrent ban of the same device
        raise BadRequest("Device is already banned", code="ALREADY_BANNED")

    await _close_sockets(target_device_id, row.ip_address)
    logger.info(
        "[ban] device banned by session=%s (ip_ban=%s, had_session=%s)",
        actor.id, ban_ip, target is not None,
    )
    return row


async def unban_device(actor: Session, target_device_id: str) -> None:
    """
    Lift a device ban (device row and any IP captured with it) and clear the
    session flag, in one transaction.

    Raises:
        Forbidden: caller is a plain user
        NotFound: the device is not banned
    """
    ensure_allowed(actor.role, Operation.UNBAN, Role.USER)
    target = await Session.get_or_none(device_id=target_device_id)
    if target is not None:
        ensure_allowed(actor.role, Operation.UNBAN, target.role)

    row = await BannedDevice.get_or_none(device_id=target_device_id)
    stale_flag = target is not None and target.is_banned
    if row is None and not stale_flag:
        raise NotFound("Device is not banned", code="NOT_BANNED")

    async with in_transaction() as conn:
        if row is not None:
            await BannedDevice.filter(id=row.id).using_db(conn).delete()
        await Session.filter(device_id=target_device_id).using_db(conn).update(is_banned=False)

    logger.info("[ban] device unbanned by session=%s", actor.id)


async def is_session_banned(session: Session, ip_address: str | None = None) -> BanCheck:
    """
    Reconciling check for an existing session: the ban rows, or the cached
    flag if a write between the two ever went missing.
    """
    result = await check_ban(session.device_id, ip_address)
    if result.banned:
        return result
    if session.is_banned:
        return BanCheck(True, "device")
    return NOT_BANNED
