# gatehouse/services/moderation.py
"""
Chat posting, per-viewer visibility and message moderation.

Three actions, each its own handler:
- undo:   author only, and only for one of the author's N latest undeleted
          messages; soft delete for everyone
- hide:   anyone, any message; adds the caller to the message's hidden set;
          idempotent
- delete: admins and owners; unconditional soft delete for everyone

Visibility is decided per read (deleted_at is null AND viewer not in the
hidden set); nothing about it is cached.
"""
import datetime as dt
import logging
from enum import Enum

from tortoise.transactions import in_transaction

from gatehouse.config import settings
from gatehouse.core.errors import BadRequest, Forbidden, NotFound
from gatehouse.core.pubsub import chat_channel
from gatehouse.models.chat_message import ChatMessage
from gatehouse.models.session import Session
from gatehouse.services.identity import parse_id
from gatehouse.services.privileges import Operation, ensure_allowed

logger = logging.getLogger("uvicorn.error")


class MessageAction(str, Enum):
    UNDO = "undo"
    HIDE = "hide"
    DELETE = "delete"


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def message_to_dict(m: ChatMessage, username: str | None = None) -> dict:
    return {
        "id": str(m.id),
        "session_id": str(m.session_id),
        "username": username,
        "message": m.message,
        "created_at": m.created_at.isoformat() if m.created_at else None,
        "deleted_at": m.deleted_at.isoformat() if m.deleted_at else None,
    }


async def post_message(session: Session, text: str) -> ChatMessage:
    """
    Store a chat message for the caller and push it to connected clients.

    Raises:
        BadRequest: empty after trimming, or longer than the configured maximum
    """
    trimmed = (text or "").strip()
    if not trimmed or len(trimmed) > settings.message_max_length:
        raise BadRequest(
            f"Message must be 1-{settings.message_max_length} characters",
            code="INVALID_MESSAGE",
        )
    msg = await ChatMessage.create(session=session, message=trimmed)
    await chat_channel.publish({"type": "message", "message": message_to_dict(msg)})
    return msg


async def visible_messages(viewer: Session, limit: int | None = None) -> list[ChatMessage]:
    """
    The latest messages the viewer may see, oldest first.

    Soft-deleted rows are excluded in the query; the per-viewer hidden set is
    a JSON list, filtered here so the check works on every backend. Pages
    back through history until `limit` visible messages are collected.
    """
    limit = limit or settings.chat_history_limit
    viewer_id = str(viewer.id)
    visible: list[ChatMessage] = []
    offset = 0
    while len(visible) < limit:
        rows = await (
            ChatMessage.filter(deleted_at__isnull=True)
            .order_by("-created_at")
            .offset(offset)
            .limit(limit)
        )
        visible.extend(m for m in rows if m.is_visible_to(viewer_id))
        if len(rows) < limit:
            break
        offset += limit
    visible = visible[:limit]
    visible.reverse()
    return visible


async def _load_message(message_id: str) -> ChatMessage:
    mid = parse_id(message_id)
    msg = await ChatMessage.get_or_none(id=mid) if mid else None
    if msg is None:
        raise NotFound("Message not found", code="MESSAGE_NOT_FOUND")
    return msg


async def _soft_delete(msg: ChatMessage, actor: Session) -> None:
    # Racing undo/delete both land on the same terminal state; last write wins
    await ChatMessage.filter(id=msg.id).update(deleted_at=utc_now(), deleted_by=actor)
    await chat_channel.publish({"type": "message_deleted", "id": str(msg.id)})


async def recent_undoable_ids(author: Session) -> set:
    rows = await (
        ChatMessage.filter(session_id=author.id, deleted_at__isnull=True)
        .order_by("-created_at")
        .limit(settings.undo_window)
        .values_list("id", flat=True)
    )
    return {str(r) for r in rows}


async def _undo(session: Session, msg: ChatMessage) -> str:
    if str(msg.session_id) != str(session.id):
        raise Forbidden("You can only undo your own messages", code="NOT_MESSAGE_AUTHOR")
    if str(msg.id) not in await recent_undoable_ids(session):
        raise Forbidden(
            f"You can only undo your last {settings.undo_window} messages",
            code="UNDO_WINDOW_EXPIRED",
        )
    await _soft_delete(msg, session)
    logger.info("[chat] message undone by author")
    return MessageAction.UNDO.value


async def _hide(session: Session, msg: ChatMessage) -> str:
    viewer_id = str(session.id)
    async with in_transaction() as conn:
        # Re-read under the transaction so concurrent hides do not drop entries
        current = await ChatMessage.filter(id=msg.id).using_db(conn).select_for_update().first()
        hidden = list((current or msg).hidden_for_session_ids or [])
        if viewer_id in hidden:
            return "already_hidden"
        hidden.append(viewer_id)
        await ChatMessage.filter(id=msg.id).using_db(conn).update(hidden_for_session_ids=hidden)
    await chat_channel.publish_to(viewer_id, {"type": "message_hidden", "id": str(msg.id)})
    return MessageAction.HIDE.value


async def _delete(session: Session, msg: ChatMessage) -> str:
    ensure_allowed(session.role, Operation.MODERATE_MESSAGE)
    await _soft_delete(msg, session)
    logger.info("[chat] message deleted by moderator session=%s", session.id)
    return MessageAction.DELETE.value


_HANDLERS = {
    MessageAction.UNDO: _undo,
    MessageAction.HIDE: _hide,
    MessageAction.DELETE: _delete,
}


async def apply_action(session: Session, message_id: str, action: MessageAction | str) -> str:
    """
    Run a moderation action on a message for the calling session.

    Returns:
        The action performed ("undo", "hide", "delete") or "already_hidden"

    Raises:
        BadRequest: unknown action
        NotFound: no such message
        Forbidden: caller may not perform this action on this message
    """
    try:
        action = MessageAction(action)
    except ValueError:
        raise BadRequest("action must be one of: undo, hide, delete", code="INVALID_ACTION")
    msg = await _load_message(message_id)
    return await _HANDLERS[action](session, msg)
