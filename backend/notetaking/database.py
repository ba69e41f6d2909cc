"""
Note Taking API — Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and the request-scoped
       session dependency.
Why:   Services never reach for a global handle: every service call receives
       the request's AsyncSession explicitly, and that session carries the
       single transaction the whole request runs in.
How:   get_db_session() yields one session per request, commits when the
       handler returns, rolls back when anything raises.

Transaction boundary:
    Tag reconciliation (lookup tags → insert missing → drop old joins →
    insert new joins) and the note write it belongs to all happen on the
    same session, so they become visible together or not at all. Closing a
    session whose transaction was never committed rolls it back, which also
    covers requests cancelled mid-flight.
"""

from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import DateTime
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from notetaking.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool sizing only applies to server databases; SQLite picks its own pool."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# expire_on_commit=False: response models are built from ORM rows after the
# flush, and attribute access must not trigger lazy reloads.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


class UTCDateTime(TypeDecorator):
    """
    TIMESTAMP WITH TIME ZONE that always comes back as an aware UTC datetime.

    PostgreSQL returns aware values in the session time zone; SQLite keeps no
    offset at all and returns naive ones. Both are normalized to UTC here, so
    a timestamp reads the same whether it was just written or loaded later.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    @staticmethod
    def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        return self._as_utc(value)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        return self._as_utc(value)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    1. Creates a new session from the factory
    2. Yields it to the route handler, which hands it to the services
    3. On success: commits the transaction
    4. On error: rolls back, then re-raises for the global error handlers
    5. Always: closes the session (returns the connection to the pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Closes all pooled connections; called during application shutdown."""
    await engine.dispose()
