from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState
import json
import logging
from gatehouse.core.errors import GatehouseError
from gatehouse.core.pubsub import CLOSE_FORBIDDEN, CLOSE_UNAUTHENTICATED, chat_channel
from gatehouse.core.security import client_ip
from gatehouse.services.sessions import require_active_session

logger = logging.getLogger("uvicorn.error")

router = APIRouter()

@router.websocket("/ws/chat")
async def ws_chat(ws: WebSocket):
    """
    WebSocket endpoint for live chat events.

    The device id travels as a query parameter (?device_id=...) and is
    resolved exactly like a REST caller: unknown devices are closed with 4401,
    banned devices and non-owners while the site is off with 4403.

    Message flow:
    1. Client connects to /ws/chat?device_id=...
    2. Server resolves the session and sends: {"type": "ready", "sessionId": "..."}
    3. Server pushes {"type": "message"}, {"type": "message_deleted"} to
       everyone and {"type": "message_hidden"} to the hiding viewer only
    4. Client may send {"type": "ping"}; server answers {"type": "pong"}

    Args:
        ws: WebSocket connection object
    """
    device_id = ws.query_params.get("device_id")
    try:
        session = await require_active_session(device_id, client_ip(ws))
    except GatehouseError as e:
        code = CLOSE_UNAUTHENTICATED if e.status_code == 401 else CLOSE_FORBIDDEN
        logger.info("[ws_chat] rejected code=%s reason=%s", code, e.code)
        await ws.close(code=code)
        return

    await ws.accept()
    session_id = str(session.id)
    await chat_channel.subscribe(session_id, ws)
    logger.info("[ws_chat] connected session=%s", session_id)
    await ws.send_text(json.dumps({"type": "ready", "sessionId": session_id}))
    try:
        # The channel may close this socket from another request (ban, site off)
        while ws.application_state == WebSocketState.CONNECTED:
            raw = await ws.receive_text()
            try:
                msg = json.loads(raw)
            except ValueError:
                continue
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await ws.send_text(json.dumps({"type": "pong"}))
    except WebSocketDisconnect:
        logger.info("[ws_chat] disconnected session=%s", session_id)
    finally:
        chat_channel.unsubscribe(session_id, ws)
