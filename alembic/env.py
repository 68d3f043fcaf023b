"""
Alembic environment for the Year Calendar account store.

Migrations run over the same async drivers as the application
(aiosqlite / asyncpg), so no sync database driver is needed.
"""

import asyncio
import logging
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from yearcal.config import get_settings
from yearcal.models.base import Base

# Every model must be imported here for autogenerate to see it
from yearcal.models.accounts import Account  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

# DATABASE_URL wins over alembic.ini
config.set_main_option("sqlalchemy.url", get_settings().async_database_url)

target_metadata = Base.metadata

# SQLite cannot ALTER most constraints in place
_CONTEXT_OPTIONS = {
    "target_metadata": target_metadata,
    "render_as_batch": True,
}


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_CONTEXT_OPTIONS,
    )

    with context.begin_transaction():
        context.run_migrations()


def _run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, compare_type=True, **_CONTEXT_OPTIONS)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Apply migrations over an async connection."""
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with engine.connect() as connection:
        await connection.run_sync(_run_migrations)

    await engine.dispose()


if context.is_offline_mode():
    logger.info("Running migrations offline")
    run_migrations_offline()
else:
    logger.info("Running migrations online")
    asyncio.run(run_migrations_online())
