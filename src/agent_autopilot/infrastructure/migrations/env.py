"""Alembic environment for the ledger schema (bid_records, oversight_requests).

DATABASE_URL from Settings wins over alembic.ini. SQLite ledgers need batch
mode because ALTER TABLE support there is partial.

    alembic upgrade head            # apply against DATABASE_URL
    alembic upgrade head --sql      # print the DDL instead
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from agent_autopilot.config import get_settings
from agent_autopilot.infrastructure.database.orm_models import Base

settings = get_settings()

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        render_as_batch=settings.is_sqlite,
        compare_type=True,
        **kwargs,
    )


def _run(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def _run_online() -> None:
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_run_online())
