"""
Pytest configuration and fixtures for Year Calendar tests.

Provides an in-memory database session, settings and credential factories.
HTTP fakes live in tests/helpers.py.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from yearcal.auth.credentials import AccountCredential
from yearcal.config import Settings
from yearcal.models.base import Base


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a clean async database session for each test.

    Uses an in-memory SQLite database that is torn down after each test.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    TestingSessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async with TestingSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def settings() -> Settings:
    """Settings with OAuth client credentials and no .env file."""
    return Settings(
        _env_file=None,
        google_oauth_client_id="client-id",
        google_oauth_client_secret="client-secret",
    )


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def make_credential(now: datetime) -> Callable[..., AccountCredential]:
    """
    Factory for AccountCredential.

    expires_in is seconds from now; pass None for an unknown expiry.
    """

    def _make(
        account_id: str = "acct-1",
        access_token: str | None = "access-1",
        refresh_token: str | None = "refresh-1",
        expires_in: int | None = 3600,
        email: str | None = None,
        source: str = "store",
    ) -> AccountCredential:
        expires_at = now + timedelta(seconds=expires_in) if expires_in is not None else None
        return AccountCredential(
            account_id=account_id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            email=email,
            source=source,
        )

    return _make
