"""
Flock Backend — Test Configuration (conftest.py)
==================================================

Shared pytest fixtures.

Every test gets its own SQLite database file (aiosqlite) with the full
schema created from the ORM metadata, so services and routes run against
real SQL, not mocks.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:        async engine on a fresh SQLite file
    ├── db_session:       session for calling services directly
    ├── client:           anonymous HTTPX AsyncClient against the app
    ├── register:         factory: sign up through the API → (user json, token)
    ├── authed_client:    factory: AsyncClient carrying a session cookie
    ├── read_session_cookie: pull the `jwt` value out of a response
    ├── make_user:        factory: insert an identity straight into db_session
    ├── png_bytes:        a 1x1 PNG
    ├── png_data_uri:     the same PNG as a data URI
    └── fake_mime:        skip libmagic, report every upload as image/png
"""

import base64
import os
import tempfile
from http.cookies import SimpleCookie
from typing import AsyncGenerator, Optional, Tuple

# Environment must be in place before app.config builds its settings
_TEST_ROOT = tempfile.mkdtemp(prefix="flock_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/flock.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_ROOT, "storage")
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import settings
from app.database import Base, get_db_session
from app.main import app
from app.models.user import User
from app.security import hash_password
from app.services.image_service import image_service

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def session_token(response) -> Optional[str]:
    """The `jwt` value from a response's Set-Cookie header, if any."""
    for header in response.headers.get_list("set-cookie"):
        cookie = SimpleCookie()
        cookie.load(header)
        if settings.session_cookie_name in cookie:
            return cookie[settings.session_cookie_name].value
    return None


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def make_user(db_session):
    """Insert an identity directly, bypassing signup."""
    counter = {"n": 0}

    async def _make(username: Optional[str] = None, password: str = "secret123") -> User:
        counter["n"] += 1
        name = username or f"user{counter['n']}"
        user = User(
            username=name,
            full_name=name.title(),
            email=f"{name}@example.com",
            password=hash_password(password),
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Images
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def png_data_uri() -> str:
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


@pytest.fixture
def fake_mime(monkeypatch):
    """Content sniffing needs libmagic on the host; report PNG instead."""
    monkeypatch.setattr(image_service, "detect_mime_type", lambda content: "image/png")


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Anonymous client; requests share the per-test database.

    get_db_session is overridden with the same commit/rollback contract as
    the real dependency, bound to the test engine.
    """

    async def _override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def read_session_cookie():
    return session_token


@pytest_asyncio.fixture
async def register(client):
    """Sign up through the API, return (user json, session token)."""

    async def _register(username: str, password: str = "secret123") -> Tuple[dict, str]:
        response = await client.post(
            "/api/auth/signup",
            json={
                "username": username,
                "fullName": username.title(),
                "email": f"{username}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        # The anonymous client stays anonymous
        client.cookies.clear()
        return response.json(), session_token(response)

    return _register


@pytest_asyncio.fixture
async def authed_client(client):
    """Factory for clients that send a given session token."""
    opened = []

    async def _authed(token: str) -> AsyncClient:
        ac = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={settings.session_cookie_name: token},
        )
        opened.append(ac)
        return ac

    yield _authed
    for ac in opened:
        await ac.aclose()
