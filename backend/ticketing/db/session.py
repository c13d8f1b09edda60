"""
Database handle: engine plus session factory.

One ``Database`` is constructed by the application factory (or by tests)
and stored on ``app.state``. Request handlers receive sessions through the
``get_db`` dependency; nothing here is a module-level singleton.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ticketing.core.config import Settings
from ticketing.core.logging import get_logger
from ticketing.db.base import Base

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    def __init__(self, url: str, **engine_kwargs):
        self.url = make_url(url)
        if self.url.get_backend_name() == "sqlite":
            # Writers wait on each other instead of failing with "database is locked"
            engine_kwargs.setdefault("connect_args", {"timeout": 30})

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        if self.url.get_backend_name() == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=True,
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        """Create every table from model metadata (tests and local runs)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("database_disposed", backend=self.url.get_backend_name())


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session bound to the application's Database.

    Services own their transaction boundaries and commit explicitly; any
    uncommitted work is rolled back when the session closes.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
