"""Test fixtures: a fresh in-memory SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine. StaticPool keeps the
   single connection alive so every session sees the same database.
2. The app's get_db is overridden to hand out sessions from that engine,
   one per request, just like production.
3. db_session is a separate session on the same engine for arranging
   and inspecting rows directly.

bcrypt rounds are turned down before the app is imported.
"""

import os

os.environ.setdefault("PONDOBRO_BCRYPT_ROUNDS", "4")
os.environ.setdefault("PONDOBRO_DATABASE_URL", "sqlite+aiosqlite://")

import uuid  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from pondobro.db.engine import (  # noqa: E402
    build_engine,
    build_session_factory,
    create_tables,
    get_db,
)
from pondobro.main import app  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"
PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture()
async def engine():
    engine = build_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for arranging/inspecting rows outside the HTTP path."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client against the real app with get_db pointed at the test DB.

    Learn: Auth is NOT overridden; tests go through the real cookie and
    bearer paths. The client's cookie jar carries the refresh cookie
    between calls, like a browser would.
    """

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


async def register(client, email=None, password=PASSWORD):
    """Register through the API; returns the response."""
    email = email or unique_email()
    return await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "confirmPassword": password},
    )
