"""
Persisted account storage and retrieval.

Reads linked Google accounts for a user and writes refreshed tokens back.
Database failures surface as AccountStoreError.
"""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from yearcal.auth.credentials import AccountCredential
from yearcal.exceptions import AccountStoreError
from yearcal.models.accounts import Account, GOOGLE_PROVIDER

logger = logging.getLogger(__name__)


def _to_credential(account: Account) -> AccountCredential:
    return AccountCredential(
        account_id=account.provider_account_id,
        access_token=account.access_token or None,
        refresh_token=account.refresh_token or None,
        expires_at=account.expiry,
        source="store",
    )


async def load_google_accounts(
    session: AsyncSession,
    user_id: str,
) -> list[AccountCredential]:
    """
    Load all linked Google account credentials for a user.

    Args:
        session: Database session
        user_id: The application user's ID

    Returns:
        One credential per linked account (soft-deleted rows excluded)

    Raises:
        AccountStoreError: If the accounts cannot be read
    """
    stmt = (
        select(Account)
        .where(
            Account.user_id == user_id,
            Account.provider == GOOGLE_PROVIDER,
            Account.live(),
        )
        .order_by(Account.created_at)
    )

    try:
        result = await session.execute(stmt)
        accounts = result.scalars().all()
    except SQLAlchemyError as e:
        raise AccountStoreError(
            f"Failed to load linked accounts for user {user_id}: {e}",
            original_error=e,
        )

    return [_to_credential(account) for account in accounts]


async def save_refreshed_tokens(
    session: AsyncSession,
    provider_account_id: str,
    access_token: str,
    refresh_token: str | None,
    expires_at: datetime,
) -> None:
    """
    Persist a refreshed token set for one account row.

    Only access_token, refresh_token and expires_at are written. Concurrent
    writers are last-write-wins.

    Raises:
        AccountStoreError: If the update fails
    """
    stmt = (
        update(Account)
        .where(
            Account.provider == GOOGLE_PROVIDER,
            Account.provider_account_id == provider_account_id,
        )
        .values(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(expires_at.timestamp()),
        )
    )

    try:
        await session.execute(stmt)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise AccountStoreError(
            f"Failed to persist refreshed tokens for account {provider_account_id}: {e}",
            original_error=e,
        )

    logger.info(f"Persisted refreshed tokens for account {provider_account_id}")
