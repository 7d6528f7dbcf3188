import pytest

from gatehouse.models.session import Role


pytestmark = pytest.mark.asyncio


async def toggle(client, actor, enabled: bool):
    return await client.post(
        "/api/v1/site/toggle", json={"device_id": actor.device_id, "enabled": enabled}
    )


async def test_site_enabled_by_default(client):
    resp = await client.get("/api/v1/site/status")
    assert resp.status_code == 200
    assert resp.json()["data"]["enabled"] is True


async def test_only_owner_can_toggle(client, create_session):
    admin = await create_session(Role.ADMIN)
    resp = await toggle(client, admin, False)
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "INSUFFICIENT_ROLE"
    assert (await client.get("/api/v1/site/status")).json()["data"]["enabled"] is True


async def test_disabled_site_blocks_everyone_but_owners(client, create_session):
    owner = await create_session(Role.OWNER)
    admin = await create_session(Role.ADMIN)
    user = await create_session(Role.USER)

    off = await toggle(client, owner, False)
    assert off.status_code == 200
    assert off.json()["data"]["enabled"] is False

    for actor in (admin, user):
        resp = await client.post("/api/v1/auth/session", json={"device_id": actor.device_id})
        assert resp.status_code == 403
        assert resp.json()["detail"]["code"] == "SITE_DISABLED"

    blocked = await client.get("/api/v1/chat/messages", params={"device_id": user.device_id})
    assert blocked.status_code == 403

    owner_check = await client.post("/api/v1/auth/session", json={"device_id": owner.device_id})
    assert owner_check.status_code == 200
    owner_chat = await client.post(
        "/api/v1/chat/messages", json={"device_id": owner.device_id, "message": "still here"}
    )
    assert owner_chat.status_code == 200

    # Logging in still works and reports the switch
    login = await client.post(
        "/api/v1/auth/authenticate",
        json={"credential": "admin-secret", "device_id": admin.device_id},
    )
    assert login.status_code == 200
    assert login.json()["data"]["siteEnabled"] is False

    on = await toggle(client, owner, True)
    assert on.json()["data"]["enabled"] is True
    resp = await client.post("/api/v1/auth/session", json={"device_id": user.device_id})
    assert resp.status_code == 200
