"""
Database Configuration for the Admissions Backend

Async SQLAlchemy engine and session management.

The DatabaseManager is created once at the process boundary (the FastAPI
lifespan or a script's main) and handed to whoever needs sessions. There is
no module-level client: request handlers reach the manager through
``request.app.state.db``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)
from sqlalchemy.pool import StaticPool
from sqlalchemy import text
from sqlmodel import SQLModel

from app.config.settings import Settings


def normalize_database_url(database_url: str) -> str:
    """Rewrite sync Postgres URLs to the asyncpg driver."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    return database_url


def _is_memory_sqlite(database_url: str) -> bool:
    if not database_url.startswith("sqlite"):
        return False
    path = database_url.split("://", 1)[-1]
    return path in ("", "/") or ":memory:" in path


class DatabaseManager:
    """
    Owns one async engine and its session factory.

    Args:
        database_url: SQLAlchemy URL (async driver)
        echo: Log emitted SQL
        pool_size, max_overflow, pool_timeout: Pool tuning, ignored for SQLite
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
    ):
        self.database_url = normalize_database_url(database_url)
        self._echo = echo
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_timeout = pool_timeout
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseManager":
        return cls(
            settings.database_url,
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
        )

    @property
    def engine(self) -> AsyncEngine:
        """Get or create async engine."""
        if self._engine is None:
            self._initialize_engine()
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create session factory."""
        if self._session_factory is None:
            self._initialize_engine()
        return self._session_factory

    def _initialize_engine(self) -> None:
        """
        Initialize the async engine.

        In-memory SQLite shares a single connection so every session sees
        the same database. Server databases get a pre-pinged pool.
        """
        if _is_memory_sqlite(self.database_url):
            self._engine = create_async_engine(
                self.database_url,
                echo=self._echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        elif self.database_url.startswith("sqlite"):
            self._engine = create_async_engine(self.database_url, echo=self._echo)
        else:
            self._engine = create_async_engine(
                self.database_url,
                echo=self._echo,
                pool_size=self._pool_size,
                max_overflow=self._max_overflow,
                pool_timeout=self._pool_timeout,
                pool_pre_ping=True,  # Verify connections before use
            )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_tables(self) -> None:
        """Create all tables from SQLModel metadata."""
        # Register every table on the metadata
        import app.infrastructure.db.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables (use with caution, mainly for testing)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)

    async def ping(self) -> None:
        """Verify the database answers."""
        async with self.session_factory() as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        """Close engine and dispose of connection pool."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions outside FastAPI requests.

        Usage:
            async with db.session() as session:
                result = await session.execute(query)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection for async database sessions.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(session: AsyncSession = Depends(get_session)):
            ...

    Yields:
        AsyncSession: Database session that auto-closes after use
    """
    db: DatabaseManager = request.app.state.db
    async with db.session() as session:
        yield session
