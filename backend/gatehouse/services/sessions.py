# gatehouse/services/sessions.py
"""
Session lifecycle: authentication, caller resolution and the privileged
session operations (delete, role change, admin overview).

Every request resolves its caller from the device id it presents. Nothing
about a session is cached in-process; role and ban state are re-read from
the store each time.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from enum import Enum

from tortoise.exceptions import IntegrityError

from gatehouse.config import settings
from gatehouse.core.errors import (
    BadRequest,
    Forbidden,
    GatehouseError,
    NotAuthenticated,
    NotFound,
    StorageFailure,
)
from gatehouse.core.pubsub import CLOSE_UNAUTHENTICATED, chat_channel
from gatehouse.core.security import get_keyring
from gatehouse.models.banned_device import BannedDevice
from gatehouse.models.chat_message import ChatMessage
from gatehouse.models.profile import Profile
from gatehouse.models.session import Role, Session
from gatehouse.services import waiting_list
from gatehouse.services.ban_guard import check_ban, is_session_banned
from gatehouse.services.identity import resolve_session
from gatehouse.services.privileges import Operation, ensure_allowed
from gatehouse.services.site_switch import site_open_for
from gatehouse.services.usernames import username_error

logger = logging.getLogger("uvicorn.error")


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class AuthState(str, Enum):
    SUCCESS = "success"
    WAITING = "waiting"
    DENIED = "denied"


@dataclass
class AuthResult:
    """
    Outcome of authenticate().

    - SUCCESS: session issued/refreshed; needs_username tells the client to
      ask for a display name
    - WAITING: device queued (or still queued) on the waiting list
    - DENIED: `error` carries the status/code to surface
    """
    state: AuthState
    session: Session | None = None
    username: str | None = None
    needs_username: bool = False
    message: str = ""
    error: GatehouseError | None = None

    @classmethod
    def denied(cls, error: GatehouseError) -> "AuthResult":
        return cls(AuthState.DENIED, message=error.message, error=error)


async def _upsert_session(device_id: str, role: Role, ip_address: str | None) -> Session:
    """
    Create the session for an unseen device, else refresh role, last activity
    and IP. The unique device_id constraint settles concurrent first logins:
    the losing insert falls through to the update path.
    """
    now = utc_now()
    session = await Session.get_or_none(device_id=device_id)
    if session is None:
        try:
            session = await Session.create(
                device_id=device_id,
                role=role,
                ip_address=ip_address,
                last_active_at=now,
            )
            logger.info("[auth] session created role=%s id=%s", role.value, session.id)
            return session
        except IntegrityError:
            session = await Session.get_or_none(device_id=device_id)
            if session is None:
                raise StorageFailure("Session insert conflicted but no session was found")

    session.role = role
    session.last_active_at = now
    if ip_address:
        session.ip_address = ip_address
    # The ban guard already passed, so the cached flag must agree with the rows
    session.is_banned = False
    await session.save()
    return session


async def username_for(session: Session) -> str | None:
    profile = await Profile.get_or_none(session_id=session.id)
    return profile.username if profile else None


async def authenticate(credential: str, device_id: str, ip_address: str | None = None) -> AuthResult:
    """
    Log a device in with a tier credential.

    Order: device ban -> credential tier -> IP ban (non-owners) ->
    waiting list (non-owners without a session) -> session upsert -> profile.
    """
    if not credential or not device_id:
        raise BadRequest("credential and device_id are required")

    device_ban = await check_ban(device_id)
    if device_ban.banned:
        logger.info("[auth] banned device attempt")
        return AuthResult.denied(device_ban.error())

    role = get_keyring().resolve(credential)
    if role is None:
        logger.info("[auth] invalid credential attempt")
        return AuthResult.denied(
            NotAuthenticated("Invalid password", code="AUTH_INVALID_CREDENTIALS")
        )

    # Owners are exempt from IP-level bans so a shared address cannot lock them out
    if role != Role.OWNER:
        ip_ban = await check_ban(device_id, ip_address)
        if ip_ban.banned:
            logger.info("[auth] banned network attempt")
            return AuthResult.denied(ip_ban.error())

        if await resolve_session(device_id) is None:
            gate = await waiting_list.admit(device_id, ip_address)
            if gate.outcome == waiting_list.GateOutcome.DENY:
                return AuthResult.denied(Forbidden(gate.message, code="WAITING_LIST_DENIED"))
            if gate.outcome == waiting_list.GateOutcome.WAIT:
                return AuthResult(AuthState.WAITING, message=gate.message)

    session = await _upsert_session(device_id, role, ip_address)
    username = await username_for(session)
    logger.info("[auth] successful login role=%s", role.value)
    return AuthResult(
        AuthState.SUCCESS,
        session=session,
        username=username,
        needs_username=username is None,
    )


async def require_active_session(
    device_id: str | None,
    ip_address: str | None = None,
    *,
    check_site: bool = True,
) -> Session:
    """
    Resolve the caller for a protected operation.

    Raises:
        NotAuthenticated: no session for this device
        Forbidden: caller banned (device, IP or cached flag), or the site is
                   disabled and the caller is not an owner
    """
    session = await resolve_session(device_id)
    if session is None:
        raise NotAuthenticated()
    ban = await is_session_banned(session, ip_address if session.role != Role.OWNER else None)
    if ban.banned:
        raise ban.error()
    if check_site and not await site_open_for(session.role):
        raise Forbidden("The site is currently disabled", code="SITE_DISABLED")
    return session


async def touch(session: Session, ip_address: str | None = None) -> Session:
    session.last_active_at = utc_now()
    if ip_address:
        session.ip_address = ip_address
    await session.save()
    return session


async def set_username(session: Session, username: str) -> str:
    """
    Create or update the caller's profile.

    Returns:
        The stored (trimmed) username

    Raises:
        BadRequest: username fails the policy
    """
    error = username_error(username)
    if error:
        raise BadRequest(error, code="INVALID_USERNAME")
    trimmed = username.strip()

    profile = await Profile.get_or_none(session_id=session.id)
    if profile is None:
        try:
            await Profile.create(session=session, username=trimmed)
            return trimmed
        except IntegrityError:
            profile = await Profile.get_or_none(session_id=session.id)
            if profile is None:
                raise StorageFailure("Profile insert conflicted but no profile was found")
    profile.username = trimmed
    await profile.save()
    return trimmed


async def delete_session(actor: Session, target_device_id: str) -> None:
    """
    Remove another device's session (its profile and messages go with it).

    Raises:
        Forbidden: self-target, insufficient role, or target ranked too high
        NotFound: no session for the target device
    """
    ensure_allowed(
        actor.role, Operation.DELETE_SESSION, Role.USER,
        is_self=target_device_id == actor.device_id,
    )
    target = await Session.get_or_none(device_id=target_device_id)
    if target is None:
        raise NotFound("Target session not found", code="TARGET_NOT_FOUND")
    ensure_allowed(actor.role, Operation.DELETE_SESSION, target.role)
    await target.delete()
    await chat_channel.disconnect(str(target.id), CLOSE_UNAUTHENTICATED)
    logger.info("[session] session id=%s deleted by session=%s", target.id, actor.id)


def parse_assignable_role(raw: str) -> Role:
    """
    Validate a requested role for the role-change operation.

    Raises:
        BadRequest: not a role name
        Forbidden: "owner", which is never assignable
    """
    try:
        role = Role(str(raw).strip().lower())
    except ValueError:
        raise BadRequest("new_role must be 'user' or 'admin'", code="INVALID_ROLE")
    if role == Role.OWNER:
        raise Forbidden("The owner role cannot be assigned", code="OWNER_ROLE_FIXED")
    return role


async def change_role(actor: Session, target_device_id: str, new_role: str) -> Session:
    """
    Owner-only switch of a session between user and admin.

    Note the next authentication from that device re-derives the role from
    the credential it presents.
    """
    role = parse_assignable_role(new_role)
    ensure_allowed(
        actor.role, Operation.CHANGE_ROLE, Role.USER,
        is_self=target_device_id == actor.device_id,
    )
    target = await Session.get_or_none(device_id=target_device_id)
    if target is None:
        raise NotFound("Target session not found", code="TARGET_NOT_FOUND")
    ensure_allowed(actor.role, Operation.CHANGE_ROLE, target.role)

    target.role = role
    await target.save()
    logger.info("[session] session id=%s role=%s by session=%s", target.id, role.value, actor.id)
    return target


@dataclass
class AdminOverview:
    sessions: list[Session]
    banned_devices: list[BannedDevice]
    messages: list[ChatMessage]
    usernames: dict[str, str]


async def admin_overview(actor: Session) -> AdminOverview:
    """Everything the moderation dashboard shows, for admins and owners."""
    ensure_allowed(actor.role, Operation.VIEW_ADMIN_DATA)
    sessions = await Session.all().order_by("-last_active_at")
    bans = await BannedDevice.all().order_by("-banned_at")
    messages = await ChatMessage.all().order_by("-created_at").limit(settings.chat_history_limit)
    profiles = await Profile.all()
    return AdminOverview(
        sessions=sessions,
        banned_devices=bans,
        messages=messages,
        usernames={str(p.session_id): p.username for p in profiles},
    )
