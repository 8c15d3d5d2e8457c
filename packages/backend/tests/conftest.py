"""Test fixtures — a fresh in-memory SQLite database per test.

Learn: Env vars are set BEFORE vidshare is imported because settings is a
module-level singleton. Each test gets its own engine (StaticPool keeps
the single in-memory connection alive) with all tables created. The HTTP
client overrides get_db so every request gets its own session, just
like production — which matters for the session tests, since rotation
must be visible across requests.
"""

import os

os.environ.setdefault("VIDSHARE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("VIDSHARE_COOKIE_SECURE", "false")
os.environ.setdefault("VIDSHARE_BCRYPT_ROUNDS", "4")

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vidshare.db.engine import get_db
from vidshare.db.models import Base
from vidshare.main import app

PASSWORD = "password_123"


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for driving services directly (no HTTP)."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client against the real app with get_db pointed at the test DB.

    Auth is NOT overridden: protected routes need a real access token.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def signup(client):
    """Register + log in a fresh user. Returns the login response data.

    The client's cookie jar is cleared afterwards so each test decides
    explicitly which token it sends and how.
    """
    async def _signup(username: str | None = None) -> dict:
        username = username or f"user{uuid.uuid4().hex[:8]}"
        r = await client.post(
            "/api/v1/users/register",
            json={
                "fullname": "Test User",
                "email": f"{username}@example.com",
                "username": username,
                "password": PASSWORD,
                "avatar": "https://cdn.example.com/avatar.png",
            },
        )
        assert r.status_code == 201, r.text
        r = await client.post(
            "/api/v1/users/login",
            json={"username": username, "password": PASSWORD},
        )
        assert r.status_code == 200, r.text
        client.cookies.clear()
        return r.json()["data"]

    return _signup
