"""Async PostgreSQL engine and session scopes for scrape jobs and scheduled runs."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import get_global_settings

logger = structlog.get_logger(__name__)


class DatabaseManager:
    """Owns the engine; hands out one short-lived session per job or run."""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[AsyncEngine] = None):
        """
        Initialize the engine and session factory.

        :param database_url: Async SQLAlchemy URL (built from settings if None)
        :param engine: Pre-built engine, overrides ``database_url``
        """
        settings = get_global_settings()
        self.database_url = database_url or settings.database_url

        self.engine = engine or create_async_engine(
            self.database_url,
            echo=settings.debug,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )

        self.async_session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scope; uncommitted work is rolled back if the block raises."""
        async with self.async_session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Dispose of pooled connections."""
        await self.engine.dispose()
        logger.info("Database engine disposed")


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get or create the process-wide database manager."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
