"""
Database engine, session factory, and declarative base.

Uses async SQLAlchemy 2.0 (asyncpg on PostgreSQL, aiosqlite on SQLite).
Engines are built from an explicit Settings object at startup and owned
by the application container.
"""

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from agentledger.config import Settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async database engine for the configured URL."""
    url = settings.async_database_url
    kwargs: dict = {"echo": settings.debug}
    # SQLite uses a static or null pool; sizing only applies to server databases.
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )
    engine = create_async_engine(url, **kwargs)
    logger.info("database_engine_created", db=url.split("@")[-1])
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    # Import models so Base.metadata is populated
    import agentledger.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized")


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("database_closed")
