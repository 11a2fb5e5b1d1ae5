"""
Foundation API Backend — Test Configuration (conftest.py)
==========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine:         in-memory SQLite engine with every table created
    ├── db_session:        session on that engine for arranging test data
    ├── test_app:          the FastAPI app with get_db_session pointed at db_engine
    ├── test_client:       HTTPX AsyncClient talking to the app over ASGI
    ├── signed_in_user:    a user row plus an unexpired session row
    ├── auth_headers:      Authorization header carrying that session token
    ├── mock_db_session:   AsyncMock session for pure unit tests
    └── make_request:      builds bare Starlette requests for filter tests
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTH_SECRET"] = "test-secret-not-real-0123456789abcdef"
os.environ["SENTRY_DSN"] = ""
os.environ["CORS_ORIGIN"] = ""
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from datetime import timedelta
from typing import AsyncGenerator, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.requests import Request

from app.database import Base, get_db_session
from app.models.auth import SessionEntity, UserEntity
from app.models.base import utcnow
from app.services.product_service import product_service

SESSION_TOKEN = "test-session-token"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single connection alive, otherwise every checkout
    would see an empty :memory: database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(db_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with db_session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_app(db_session_factory):
    """The application with its session dependency bound to the test engine."""
    from app.main import app as fastapi_app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db_session] = override_get_db_session
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient configured to talk to the FastAPI app.

    raise_app_exceptions=False: an error raised by a middleware itself is
    answered by the outermost handler, which then re-raises; the client
    should see the response.
    """
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture(autouse=True)
def clear_products():
    """The product catalogue is process-wide; every test starts empty."""
    product_service.clear()
    yield
    product_service.clear()


# ══════════════════════════════════════════════════════════════════════════
# Auth Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def signed_in_user(db_session) -> UserEntity:
    """A user with one session valid for a day (token SESSION_TOKEN)."""
    user = UserEntity(email="admin@example.com", name="Admin", email_verified=True)
    db_session.add(user)
    await db_session.flush()
    db_session.add(
        SessionEntity(
            user_id=user.id,
            token=SESSION_TOKEN,
            expires_at=utcnow() + timedelta(days=1),
        )
    )
    await db_session.commit()
    return user


@pytest.fixture
def auth_headers(signed_in_user) -> Dict[str, str]:
    return {"Authorization": f"Bearer {SESSION_TOKEN}"}


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_session(mock_db_session):
            mock_db_session.execute.return_value.first.return_value = None
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_request():
    """Factory for bare Starlette requests (no app, no routing)."""

    def _make(
        path: str = "/",
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        query_string: bytes = b"",
    ) -> Request:
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "server": ("test", 80),
            "client": ("127.0.0.1", 12345),
            "root_path": "",
            "path": path,
            "query_string": query_string,
            "headers": [
                (key.lower().encode("latin-1"), value.encode("latin-1"))
                for key, value in (headers or {}).items()
            ],
        }
        return Request(scope)

    return _make
