# gatehouse/core/pubsub.py
"""
PubSub module for chat WebSocket broadcasting.
Pushes chat events (new messages, moderation actions) to connected clients so
a takedown is visible to every open chat window without waiting for a reload.
"""
from typing import Dict, Set
from starlette.websockets import WebSocket
import json

# Close codes: 4000 + the HTTP status the REST endpoints would have returned
CLOSE_UNAUTHENTICATED = 4401
CLOSE_FORBIDDEN = 4403


class ChatChannel:
    """
    Session-keyed PubSub channel for the chat stream.

    Architecture:
    - Router is responsible for ws.accept(); this module only handles routing
    - One session may hold several sockets (several tabs)
    - publish() reaches everyone; publish_to() reaches one session only
      (used for per-viewer hides)

    Data structure:
    - _subs: Dict[session_id, Set[WebSocket]]
    """
    def __init__(self):
        # Example: {"3f0c...": {ws1, ws2}, "9ab1...": {ws3}}
        self._subs: Dict[str, Set[WebSocket]] = {}

    # -------- subscribe / unsubscribe (no accept, only register) --------
    async def subscribe(self, session_id: str, ws: WebSocket):
        """
        Register a WebSocket for a session.

        Args:
            session_id: Session the socket belongs to
            ws: WebSocket connection to register
        """
        self._subs.setdefault(str(session_id), set()).add(ws)

    def unsubscribe(self, session_id: str, ws: WebSocket):
        """
        Remove a WebSocket; drops the session key once its last socket is gone.
        """
        conns = self._subs.get(str(session_id))
        if conns is None:
            return
        conns.discard(ws)
        if not conns:
            self._subs.pop(str(session_id), None)

    def subscriber_count(self) -> int:
        return sum(len(c) for c in self._subs.values())

    def session_ids(self) -> list[str]:
        return list(self._subs.keys())

    async def disconnect(self, session_id: str, code: int = CLOSE_FORBIDDEN):
        """
        Close and drop every socket of a session (ban, removal, site off).
        The sockets stop receiving events before the close frame is sent.
        """
        conns = self._subs.pop(str(session_id), set())
        for s in conns:
            try:
                await s.close(code=code)
            except Exception:
                pass  # Already closed by the client

    # -------- publish --------
    async def _send(self, conns: list, payload: dict):
        msg = json.dumps(payload)
        for s in conns:
            try:
                await s.send_text(msg)
            except Exception:
                pass  # Connection may be closed; the router unsubscribes it on disconnect

    async def publish(self, payload: dict):
        """
        Send a JSON event to every connected session.
        """
        conns = [ws for group in list(self._subs.values()) for ws in list(group)]
        await self._send(conns, payload)

    async def publish_to(self, session_id: str, payload: dict):
        """
        Send a JSON event to the sockets of one session only.
        """
        conns = list(self._subs.get(str(session_id), set()))
        await self._send(conns, payload)

# Global channel instance (singleton pattern)
# Import this instance in other modules to publish/subscribe messages
chat_channel = ChatChannel()
