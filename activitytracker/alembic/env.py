"""
Alembic environment for the tracker database.
The URL comes from the tracker settings, so migrations and the service
always target the same database.
"""
from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

import tracker.models  # noqa: F401
from tracker.core.config import settings
from tracker.db.base import Base

alembic_config = context.config

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

TRACKER_TABLES = frozenset(Base.metadata.tables)


def include_object(obj, name, type_, reflected, compare_to) -> bool:
    """Ignore host tables that share the database."""
    if type_ == "table":
        return name in TRACKER_TABLES
    return True


def _configure(**options) -> None:
    context.configure(
        target_metadata=Base.metadata,
        include_object=include_object,
        compare_type=True,
        **options,
    )


def migrate_offline() -> None:
    """Emit SQL without connecting."""
    _configure(
        url=settings.DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate_with(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_online() -> None:
    tracker_engine = create_async_engine(settings.DATABASE_URL, poolclass=pool.NullPool)
    async with tracker_engine.connect() as connection:
        await connection.run_sync(_migrate_with)
    await tracker_engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    asyncio.run(migrate_online())
