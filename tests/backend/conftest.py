import os
import uuid

# Settings are read at import time, so the environment must be in place first
TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["GENERATE_SCHEMAS"] = "1"
os.environ["OWNER_PASSWORD"] = "owner-secret"
os.environ["ADMIN_PASSWORD"] = "admin-secret"
os.environ["USER_PASSWORD"] = "user-secret"

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from gatehouse.core import db as db_module
from gatehouse.main import app
from gatehouse.models.profile import Profile
from gatehouse.models.session import Role, Session


db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

OWNER_SECRET = "owner-secret"
ADMIN_SECRET = "admin-secret"
USER_SECRET = "user-secret"


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """
    Fresh database without an HTTP client, for service-level tests.
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    await _init_test_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_session():
    """
    Factory fixture to create sessions directly via ORM, skipping the
    credential and waiting-list steps.
    """

    async def _create_session(
        role: Role = Role.USER,
        *,
        ip_address: str | None = None,
        username: str | None = None,
    ) -> Session:
        session = await Session.create(
            device_id=f"dev-{role.value}-{uuid.uuid4().hex[:8]}",
            role=role,
            ip_address=ip_address,
        )
        if username:
            await Profile.create(session=session, username=username)
        return session

    return _create_session


@pytest_asyncio.fixture
async def client_at(client):
    """
    Factory fixture for extra clients whose socket peer is a given IP.
    Use as `async with client_at("10.0.0.5") as c: ...`.
    """

    def _client_at(ip: str, port: int = 50000) -> AsyncClient:
        transport = ASGITransport(app=app, client=(ip, port))
        return AsyncClient(transport=transport, base_url="http://testserver")

    return _client_at
