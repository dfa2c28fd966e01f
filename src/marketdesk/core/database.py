"""Database handle and session management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from marketdesk.core.config import Settings, get_settings
from marketdesk.core.logging import get_logger
from marketdesk.models.base import Base

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Process-wide storage handle.

    The engine is created lazily on first use (or explicitly through
    :meth:`connect`) and drained by :meth:`dispose`. Units of work go through
    :meth:`session`, which commits on success, rolls back on any error and
    always releases the connection.
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_options: Any) -> None:
        self.url = url
        self.echo = echo
        self._engine_options = engine_options
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Database:
        """Build a handle from application settings."""
        settings = settings or get_settings()
        options: dict[str, Any] = {}
        if make_url(settings.database_url).get_backend_name() != "sqlite":
            options.update(
                pool_pre_ping=True,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
            )
        return cls(settings.database_url, echo=settings.debug, **options)

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(self.url, echo=self.echo, **self._engine_options)
            if self._engine.dialect.name == "sqlite":
                event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
            logger.info("database_engine_created", dialect=self._engine.dialect.name)
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    async def connect(self, *, create_tables: bool = False) -> None:
        """Initialise the engine and optionally create all tables."""
        if create_tables:
            await self.create_all()
        else:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Drain the connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("database_engine_disposed")
        self._engine = None
        self._session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Scoped unit of work: commit on success, roll back on failure."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """Check if database connection is healthy."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("database_health_check_failed", error=str(e))
            return False
