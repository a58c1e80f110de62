"""
Database connection and session management.
Uses async SQLAlchemy: SQLite (aiosqlite) locally, PostgreSQL (asyncpg) in production.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from orderdesk.config import settings
from orderdesk.db.models import Base


class Database:
    """Async database manager."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.db_url
        self._engine = None
        self._session_factory = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    async def init(self) -> None:
        """Initialize database engine and create tables."""
        if self._engine is not None:
            return

        # Ensure data directory exists
        if self.is_sqlite and ":memory:" not in self.url:
            path_part = self.url.split("///", 1)[-1]
            Path(path_part).parent.mkdir(parents=True, exist_ok=True)

        self._engine = create_async_engine(
            self.url,
            echo=settings.debug,
            future=True,
        )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        # Create all tables
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session; commits on success, rolls back on error."""
        if not self._session_factory:
            await self.init()

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Open a session inside an explicit transaction block.

        The block commits when the body exits normally and rolls back on any
        exception, which is then re-raised to the caller.
        """
        if not self._session_factory:
            await self.init()

        async with self._session_factory() as session:
            async with session.begin():
                yield session


# Global database instance
db = Database()
