"""Async database engine and session management.

Provides:
    - create_db_engine: Build the SQLAlchemy async engine from settings.
    - create_session_factory: A sessionmaker bound to the engine.
    - session_scope: Unit-of-work context manager (commit on success,
      rollback on error). Services open one scope per operation.
    - init_db / close_db: Lifecycle hooks for FastAPI's lifespan.

The engine and factory are owned by the service container rather than
module globals, so tests can point a ledger at a throwaway SQLite file.

Usage:
    engine = create_db_engine(settings)
    factory = create_session_factory(engine)
    async with session_scope(factory) as session:
        ...
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from agent_autopilot.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from agent_autopilot.config import Settings

logger = get_logger(__name__)


def create_db_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine.

    Pool sizing only applies to server databases; SQLite files get the
    default pool and their parent directory is created if missing.
    """
    url = make_url(settings.database_url)
    kwargs: dict = {"echo": settings.db_echo_sql, "pool_pre_ping": True}

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
        )

    engine = create_async_engine(settings.database_url, **kwargs)
    logger.info(
        "database.engine_created",
        backend=url.get_backend_name(),
        database=url.database,
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Yield a session that is committed on success or rolled back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine, create_tables: bool = True) -> None:
    """Create tables if they don't exist.

    Called during FastAPI's lifespan startup. Managed deployments turn
    create_tables off and run the Alembic migrations instead.
    """
    from agent_autopilot.infrastructure.database.orm_models import Base

    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("database.tables_created")
    else:
        logger.info("database.skipping_create_all", reason="db_create_tables disabled")


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of the engine. Called during FastAPI's lifespan shutdown."""
    await engine.dispose()
    logger.info("database.engine_disposed")
