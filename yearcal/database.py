"""
Async database access for the linked-account store.

One engine per process, built from Settings.async_database_url. Request
handlers get a session through the get_async_session dependency; code
outside a request uses session_scope().
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from yearcal.config import Settings, get_settings

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    SQLite gets the driver defaults; PostgreSQL gets a small pre-pinged
    pool since request volume is low and connections may idle for long.
    """
    echo = settings.log_level == "DEBUG"
    if not settings.uses_postgresql:
        return create_async_engine(settings.async_database_url, echo=echo)

    return create_async_engine(
        settings.async_database_url,
        pool_size=5,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=echo,
    )


settings = get_settings()
settings.validate_production_config()

async_engine = build_engine(settings)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on clean exit and rolls back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed at the end."""
    async with session_scope() as session:
        yield session


async def check_connection() -> bool:
    """Run a trivial query; False (and an error log) if the database is unreachable."""
    try:
        async with session_scope() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
    return True
