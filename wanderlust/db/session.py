"""
Database handle: one async engine plus its session factory.

The handle is constructed explicitly and owned by whoever opens it (the app
lifespan, a test fixture, a maintenance script). Nothing in the package holds
a module-level engine.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from wanderlust.core.config import Settings
from wanderlust.core.logging import get_logger
from wanderlust.db.base import Base

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """
    Enforce foreign keys and start every SQLite transaction with BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write, so two sessions can both
    read and then deadlock on the lock upgrade. Taking the write lock up
    front makes concurrent sessions queue on the busy timeout instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _configure_connection(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Async engine + session factory with an explicit open/close lifecycle."""

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs):
        self.url = url
        self._echo = echo
        self._engine_kwargs = engine_kwargs
        self.engine: Optional[AsyncEngine] = None
        self.sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        kwargs = {}
        if make_url(settings.DATABASE_URL).get_backend_name() != "sqlite":
            kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,
            )
        return cls(settings.DATABASE_URL, echo=settings.DB_ECHO, **kwargs)

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    def open(self) -> "Database":
        if self.engine is not None:
            return self

        kwargs = dict(self._engine_kwargs)
        if self.is_sqlite:
            connect_args = kwargs.setdefault("connect_args", {})
            connect_args.setdefault("timeout", SQLITE_BUSY_TIMEOUT_SECONDS)

        self.engine = create_async_engine(self.url, echo=self._echo, **kwargs)
        if self.is_sqlite:
            _serialize_sqlite_writers(self.engine)

        self.sessionmaker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.info("database_opened", backend=make_url(self.url).get_backend_name())
        return self

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("database_closed")
        self.engine = None
        self.sessionmaker = None

    async def create_all(self) -> None:
        """Create tables directly from metadata (tests and local SQLite; use Alembic elsewhere)."""
        # Register every model on Base.metadata
        import wanderlust.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        import wanderlust.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        if self.sessionmaker is None:
            raise RuntimeError("Database is not open")
        async with self.sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the app's Database handle."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
