"""
Note Taking API — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database file (aiosqlite driver) with
       the full schema created from the ORM metadata. The FastAPI app is
       built per test and its session dependency points at that database.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── engine: async engine on a throwaway SQLite file
    │   └── session_factory
    │       ├── db_session: session for service-level tests
    │       └── test_client: HTTPX AsyncClient against a fresh app
    ├── users: two persisted accounts (alice, bob)
    └── mock_db_session: AsyncMock session (no database at all)

SQLite adjustments (engine fixture):
    - pysqlite's own transaction handling is switched off and BEGIN is
      emitted explicitly, otherwise SAVEPOINTs do not work
    - case_sensitive_like=ON so LIKE behaves like PostgreSQL's
    - foreign_keys=ON so note_tags/notes references are enforced
"""

import os

# Override settings for testing BEFORE any notetaking imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test-unused.db"
os.environ["JWT_SECRET"] = "test-secret-for-the-suite-0123456789abcdef"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "10000"

from typing import AsyncGenerator, Dict  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from notetaking.database import Base, get_db_session  # noqa: E402
from notetaking.models import User  # noqa: E402
from notetaking.services.password_hasher import hash_password  # noqa: E402
from notetaking.services.token_service import token_service  # noqa: E402

TEST_PASSWORD = "secret-pass"


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """Async engine on a per-test SQLite file with the schema created."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}")

    @event.listens_for(test_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA case_sensitive_like=ON")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(test_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    A session for calling services directly.

    Usage:
        async def test_create(db_session, users):
            note = await note_service.create_note(db_session, users["alice"].id, ...)
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def users(session_factory) -> Dict[str, User]:
    """Two committed accounts; both use TEST_PASSWORD."""
    async with session_factory() as session:
        alice = User(
            email="alice@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            full_name="Alice",
        )
        bob = User(
            email="bob@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            full_name="Bob",
        )
        session.add_all([alice, bob])
        await session.commit()
        return {"alice": alice, "bob": bob}


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_db_failure(mock_db_session):
            mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to a fresh app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from notetaking.main import create_app

    app = create_app()

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    """
    Builds an Authorization header carrying a valid access token.

    Usage:
        response = await test_client.get("/notes", headers=auth_headers(users["alice"]))
    """

    def _headers(user: User) -> Dict[str, str]:
        token = token_service.create_access_token(user.id, user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers
