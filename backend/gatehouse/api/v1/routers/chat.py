# gatehouse/api/v1/routers/chat.py
from fastapi import APIRouter, Depends, Query, Request
from gatehouse.api.v1.deps import get_caller, resolve_caller
from gatehouse.models.profile import Profile
from gatehouse.models.session import Session
from gatehouse.schemas.chat import MessageActionIn, SendMessageIn
from gatehouse.services import moderation

router = APIRouter(prefix="/chat", tags=["chat"])

async def _usernames(session_ids) -> dict:
    ids = {sid for sid in session_ids}
    if not ids:
        return {}
    rows = await Profile.filter(session_id__in=list(ids))
    return {str(p.session_id): p.username for p in rows}

@router.get("/messages")
async def list_messages(
    caller: Session = Depends(get_caller),
    limit: int | None = Query(None, ge=1, le=200),
):
    """
    Latest chat messages visible to the caller, oldest first.

    Excludes soft-deleted messages and messages the caller has hidden.
    Visibility is computed on every call.
    """
    rows = await moderation.visible_messages(caller, limit)
    names = await _usernames(m.session_id for m in rows)
    items = [moderation.message_to_dict(m, names.get(str(m.session_id))) for m in rows]
    return {"success": True, "data": {"items": items}}

@router.post("/messages")
async def send_message(body: SendMessageIn, request: Request):
    """
    Post a chat message as the caller.

    Error codes:
        - INVALID_MESSAGE (400): empty or longer than the configured maximum
        - AUTH_REQUIRED (401) / DEVICE_BANNED (403) / SITE_DISABLED (403)
    """
    caller = await resolve_caller(request, body.device_id)
    msg = await moderation.post_message(caller, body.message)
    names = await _usernames([caller.id])
    return {"success": True, "data": {"message": moderation.message_to_dict(msg, names.get(str(caller.id)))}}

@router.post("/messages/{message_id}/action")
async def message_action(message_id: str, body: MessageActionIn, request: Request):
    """
    Apply a moderation action to a message.

    Actions:
        - undo: author only, one of the author's latest undeleted messages;
          deletes for everyone
        - hide: anyone; hides the message for the caller only (repeat calls
          report "already_hidden")
        - delete: admins and owners; deletes for everyone

    Error codes:
        - INVALID_ACTION (400)
        - NOT_MESSAGE_AUTHOR / UNDO_WINDOW_EXPIRED / INSUFFICIENT_ROLE (403)
        - MESSAGE_NOT_FOUND (404)
    """
    caller = await resolve_caller(request, body.device_id)
    performed = await moderation.apply_action(caller, message_id, body.action)
    return {"success": True, "action": performed}
