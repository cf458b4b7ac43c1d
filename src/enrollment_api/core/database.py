"""
Database Configuration

Async SQLAlchemy engine and session management.

The storage handle is an explicitly constructed ``Database`` object. The
application creates one in its lifespan, stores it on ``app.state`` and hands
sessions to request handlers through the ``get_db`` dependency. Setup is
idempotent: concurrent or repeated ``init()`` calls build the engine once.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from enrollment_api.core.config import settings
from enrollment_api.core.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

# Errors that mean the database could not be reached (as opposed to a bad query)
STORAGE_UNAVAILABLE_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    OSError,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Database:
    """Owns the async engine and session factory for one process."""

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 10,
        create_tables: bool = False,
    ):
        self.url = url
        self.echo = echo
        self.pool_size = pool_size
        self.create_tables = create_tables
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[AsyncSession] | None = None
        self._init_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def init(self) -> None:
        """
        Create the engine, verify connectivity and optionally create tables.

        Safe to call more than once; only the first call does any work.
        """
        async with self._init_lock:
            if self._engine is not None:
                return

            engine = create_async_engine(
                self.url,
                echo=self.echo,
                pool_size=self.pool_size,
                pool_pre_ping=True,
                pool_recycle=300,
            )
            try:
                async with engine.begin() as conn:
                    await conn.execute(text("SELECT 1"))
                    if self.create_tables:
                        await conn.run_sync(Base.metadata.create_all)
            except Exception:
                await engine.dispose()
                raise

            self._engine = engine
            self._session_maker = async_sessionmaker(engine, expire_on_commit=False)
            logger.info("Database engine initialized")

    def session(self) -> AsyncSession:
        """Open a new session. The database must be initialized."""
        if self._session_maker is None:
            raise StorageUnavailableError()
        return self._session_maker()

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
            logger.info("Database engine disposed")


def create_database() -> Database:
    """Build a ``Database`` from application settings."""
    return Database(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
        create_tables=settings.database_auto_create,
    )


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding a database session.

    Initializes the database lazily if startup could not reach it, so a
    transient outage at boot does not leave the process permanently broken.

    Usage:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database

    if not database.is_initialized:
        try:
            await database.init()
        except STORAGE_UNAVAILABLE_ERRORS as e:
            logger.error(f"Database initialization failed: {e}")
            raise StorageUnavailableError() from e

    async with database.session() as session:
        yield session
