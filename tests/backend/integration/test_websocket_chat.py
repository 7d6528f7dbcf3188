"""
WebSocket integration tests for the chat stream.
Runs the app's own startup (schema generation on the in-memory DB) through
TestClient, so everything happens on the TestClient event loop.
"""
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from gatehouse.main import app


def _owner_login(client: TestClient, device_id: str) -> None:
    resp = client.post(
        "/api/v1/auth/authenticate",
        json={"credential": "owner-secret", "device_id": device_id},
    )
    assert resp.status_code == 200, resp.text


class TestChatSocket:
    """Tests for /ws/chat."""

    def test_unknown_device_is_rejected(self):
        """Devices without a session are closed with 4401."""
        with TestClient(app) as client:
            with pytest.raises(WebSocketDisconnect) as exc:
                with client.websocket_connect("/ws/chat?device_id=ghost") as ws:
                    ws.receive_json()
            assert exc.value.code == 4401

    def test_ready_and_ping(self):
        """A known device gets a ready event and answers to ping."""
        with TestClient(app) as client:
            _owner_login(client, "ws-owner-1")
            with client.websocket_connect("/ws/chat?device_id=ws-owner-1") as ws:
                assert ws.receive_json()["type"] == "ready"
                ws.send_json({"type": "ping"})
                assert ws.receive_json() == {"type": "pong"}

    def test_new_message_is_pushed(self):
        """Posting a message pushes it to connected sockets."""
        with TestClient(app) as client:
            _owner_login(client, "ws-owner-2")
            with client.websocket_connect("/ws/chat?device_id=ws-owner-2") as ws:
                ws.receive_json()
                resp = client.post(
                    "/api/v1/chat/messages",
                    json={"device_id": "ws-owner-2", "message": "live"},
                )
                assert resp.status_code == 200
                event = ws.receive_json()
                assert event["type"] == "message"
                assert event["message"]["message"] == "live"


def _approved_user(client: TestClient, owner_device: str, device_id: str) -> None:
    """Queue a device, approve it as the owner, and log it in."""
    first = client.post(
        "/api/v1/auth/authenticate",
        json={"credential": "user-secret", "device_id": device_id},
    )
    assert first.json()["data"]["waiting"] is True
    entries = client.get("/api/v1/waiting-list", params={"device_id": owner_device})
    entry_id = next(e["id"] for e in entries.json()["data"]["items"] if e["device_id"] == device_id)
    review = client.post(
        f"/api/v1/waiting-list/{entry_id}/review",
        json={"device_id": owner_device, "decision": "approve"},
    )
    assert review.status_code == 200
    login = client.post(
        "/api/v1/auth/authenticate",
        json={"credential": "user-secret", "device_id": device_id},
    )
    assert login.status_code == 200, login.text


class TestChatSocketRevocation:
    """Open sockets are closed when access is taken away."""

    def test_ban_closes_open_socket(self):
        """Banning a connected device closes its socket with 4403."""
        with TestClient(app) as client:
            _owner_login(client, "ws-owner-3")
            _approved_user(client, "ws-owner-3", "ws-user-3")
            with client.websocket_connect("/ws/chat?device_id=ws-user-3") as ws:
                assert ws.receive_json()["type"] == "ready"
                resp = client.post(
                    "/api/v1/admin/ban",
                    json={"device_id": "ws-owner-3", "target_device_id": "ws-user-3"},
                )
                assert resp.status_code == 200
                with pytest.raises(WebSocketDisconnect) as exc:
                    ws.receive_json()
                assert exc.value.code == 4403

    def test_site_off_closes_non_owner_socket(self):
        """Turning the site off closes non-owner sockets with 4403."""
        with TestClient(app) as client:
            _owner_login(client, "ws-owner-4")
            _approved_user(client, "ws-owner-4", "ws-user-4")
            with client.websocket_connect("/ws/chat?device_id=ws-user-4") as ws:
                assert ws.receive_json()["type"] == "ready"
                resp = client.post(
                    "/api/v1/site/toggle",
                    json={"device_id": "ws-owner-4", "enabled": False},
                )
                assert resp.status_code == 200
                with pytest.raises(WebSocketDisconnect) as exc:
                    ws.receive_json()
                assert exc.value.code == 4403
