import uuid

import pytest

from gatehouse.models.session import Role, Session
from gatehouse.models.waiting_list import WaitingListEntry, WaitingStatus


pytestmark = pytest.mark.asyncio


def new_device() -> str:
    return f"dev-{uuid.uuid4().hex[:10]}"


async def authenticate(client, credential: str, device_id: str):
    return await client.post(
        "/api/v1/auth/authenticate",
        json={"credential": credential, "device_id": device_id},
    )


async def test_first_login_waits_then_succeeds_after_approval(client, create_session):
    owner = await create_session(Role.OWNER)
    device = new_device()

    first = await authenticate(client, "user-secret", device)
    assert first.status_code == 200
    assert first.json()["data"]["waiting"] is True
    assert await Session.filter(device_id=device).count() == 0

    # Still pending: no duplicate entry, still waiting
    again = await authenticate(client, "user-secret", device)
    assert again.json()["data"]["waiting"] is True
    assert await WaitingListEntry.filter(device_id=device).count() == 1

    entries = await client.get("/api/v1/waiting-list", params={"device_id": owner.device_id})
    assert entries.status_code == 200
    entry_id = next(e["id"] for e in entries.json()["data"]["items"] if e["device_id"] == device)

    review = await client.post(
        f"/api/v1/waiting-list/{entry_id}/review",
        json={"device_id": owner.device_id, "decision": "approve"},
    )
    assert review.status_code == 200
    assert review.json()["data"]["entry"]["status"] == "approved"

    login = await authenticate(client, "user-secret", device)
    body = login.json()
    assert login.status_code == 200
    assert body["success"] is True
    assert body["data"]["session"]["role"] == "user"
    assert body["data"]["needsUsername"] is True
    assert body["data"]["capabilities"]["canModerate"] is False


async def test_denied_device_is_refused_every_time(client):
    device = new_device()
    await WaitingListEntry.create(device_id=device, status=WaitingStatus.DENIED)

    for _ in range(2):
        resp = await authenticate(client, "user-secret", device)
        assert resp.status_code == 403
        assert resp.json()["detail"]["code"] == "WAITING_LIST_DENIED"
    assert await Session.filter(device_id=device).count() == 0


async def test_invalid_credential_is_rejected(client):
    resp = await authenticate(client, "not-a-tier-secret", new_device())
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["detail"]["code"] == "AUTH_INVALID_CREDENTIALS"


async def test_missing_fields_are_bad_requests(client):
    resp = await client.post("/api/v1/auth/authenticate", json={"device_id": new_device()})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "BAD_REQUEST"


async def test_owner_bypasses_waiting_list(client):
    device = new_device()
    resp = await authenticate(client, "owner-secret", device)
    body = resp.json()
    assert resp.status_code == 200
    assert body["data"]["session"]["role"] == "owner"
    assert body["data"]["capabilities"]["canToggleSite"] is True
    assert await WaitingListEntry.filter(device_id=device).count() == 0


async def test_credential_is_trimmed_and_password_alias_accepted(client):
    resp = await client.post(
        "/api/v1/auth/authenticate",
        json={"password": "  owner-secret  ", "device_id": new_device()},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["session"]["role"] == "owner"


async def test_role_is_derived_from_credential_on_every_login(client, create_session):
    session = await create_session(Role.USER)
    resp = await authenticate(client, "admin-secret", session.device_id)
    assert resp.status_code == 200
    assert resp.json()["data"]["session"]["role"] == "admin"
    await session.refresh_from_db()
    assert session.role == Role.ADMIN


async def test_banned_device_cannot_log_in(client, create_session):
    owner = await create_session(Role.OWNER)
    user = await create_session(Role.USER)
    ban = await client.post(
        "/api/v1/admin/ban",
        json={"device_id": owner.device_id, "target_device_id": user.device_id},
    )
    assert ban.status_code == 200

    resp = await authenticate(client, "user-secret", user.device_id)
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "DEVICE_BANNED"


async def test_session_check_and_username(client, create_session):
    user = await create_session(Role.USER)

    check = await client.post("/api/v1/auth/session", json={"device_id": user.device_id})
    assert check.status_code == 200
    assert check.json()["data"]["needsUsername"] is True

    for bad in ("a", "a" * 21, "admin2", "foo  bar", "foo!"):
        resp = await client.post(
            "/api/v1/auth/username", json={"device_id": user.device_id, "username": bad}
        )
        assert resp.status_code == 400, bad
        assert resp.json()["detail"]["code"] == "INVALID_USERNAME"

    ok = await client.post(
        "/api/v1/auth/username", json={"device_id": user.device_id, "username": " Foo_Bar-1 "}
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["username"] == "Foo_Bar-1"

    check = await client.post("/api/v1/auth/session", json={"device_id": user.device_id})
    assert check.json()["data"]["needsUsername"] is False
    assert check.json()["data"]["session"]["username"] == "Foo_Bar-1"


async def test_unknown_device_requires_login(client):
    resp = await client.post("/api/v1/auth/session", json={"device_id": new_device()})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "AUTH_REQUIRED"


async def test_logout_always_succeeds(client, create_session):
    user = await create_session(Role.USER)
    known = await client.post("/api/v1/auth/logout", json={"device_id": user.device_id})
    assert known.status_code == 200
    assert known.json()["data"]["hadSession"] is True

    unknown = await client.post("/api/v1/auth/logout", json={"device_id": new_device()})
    assert unknown.status_code == 200
    assert unknown.json()["data"]["hadSession"] is False
