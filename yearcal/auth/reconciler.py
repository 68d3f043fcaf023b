"""
Account credential reconciliation.

Produces one up-to-date credential per linked Google account by merging the
persisted store with the copy carried in the session:

1. Load stored credentials, refreshing (and persisting) any near expiry
2. Merge session credentials by account id using the precedence rule
3. Refresh merged credentials still near expiry (not persisted)
4. Resolve missing e-mail addresses (best effort)

Individual refresh, persistence and e-mail failures are logged and
tolerated; only a failure to read the store propagates.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from yearcal.auth.account_store import load_google_accounts, save_refreshed_tokens
from yearcal.auth.credentials import AccountCredential, select_preferred_credential
from yearcal.auth.google_oauth import GoogleOAuthClient
from yearcal.exceptions import AccountStoreError, TokenRefreshError

logger = logging.getLogger(__name__)


class AccountReconciler:
    """
    Merges stored and session credentials for a user.

    Usage:
        reconciler = AccountReconciler(db_session, GoogleOAuthClient(http_client))
        credentials = await reconciler.reconcile(user_id, session_credentials)
    """

    def __init__(
        self,
        db: AsyncSession,
        oauth_client: GoogleOAuthClient,
        refresh_leeway: timedelta = timedelta(seconds=60),
    ):
        self._db = db
        self._oauth = oauth_client
        self._leeway = refresh_leeway

    async def _refresh(self, credential: AccountCredential) -> Optional[AccountCredential]:
        """Refresh one credential, returning None if Google refuses."""
        try:
            refreshed = await self._oauth.refresh_access_token(credential.refresh_token)
        except TokenRefreshError as e:
            logger.warning(
                f"Token refresh failed for account {credential.account_id} "
                f"(status={e.status_code}); keeping existing token"
            )
            return None
        return credential.with_refreshed(refreshed)

    async def load_stored_credentials(self, user_id: str) -> list[AccountCredential]:
        """
        Load the user's stored credentials, refreshing and persisting stale ones.

        Raises:
            AccountStoreError: If the store cannot be read
        """
        stored = await load_google_accounts(self._db, user_id)
        now = datetime.now(timezone.utc)

        fresh = []
        for credential in stored:
            if credential.needs_refresh(now, self._leeway):
                refreshed = await self._refresh(credential)
                if refreshed is not None:
                    credential = refreshed
                    try:
                        await save_refreshed_tokens(
                            self._db,
                            provider_account_id=credential.account_id,
                            access_token=credential.access_token,
                            refresh_token=credential.refresh_token,
                            expires_at=credential.expires_at,
                        )
                    except AccountStoreError as e:
                        logger.warning(f"Using unsaved refreshed token: {e.message}")
            fresh.append(credential)

        return fresh

    @staticmethod
    def merge(
        stored: Iterable[AccountCredential],
        session_credentials: Iterable[AccountCredential],
    ) -> list[AccountCredential]:
        """Merge two credential collections into one credential per account id."""
        by_id: dict[str, AccountCredential] = {}
        for credential in stored:
            by_id[credential.account_id] = credential
        for candidate in session_credentials:
            existing = by_id.get(candidate.account_id)
            if existing is None:
                by_id[candidate.account_id] = candidate
            else:
                winner = select_preferred_credential(existing, candidate)
                # Keep a known e-mail even when its copy loses
                if not winner.email:
                    winner = replace(winner, email=existing.email or candidate.email)
                by_id[candidate.account_id] = winner
        return list(by_id.values())

    async def _finalize(self, credential: AccountCredential, now: datetime) -> AccountCredential:
        if credential.needs_refresh(now, self._leeway):
            refreshed = await self._refresh(credential)
            if refreshed is not None:
                credential = refreshed

        if not credential.email and credential.access_token:
            email = await self._oauth.fetch_email(credential.access_token)
            if email:
                credential = replace(credential, email=email)
        return credential

    async def reconcile(
        self,
        user_id: str,
        session_credentials: Iterable[AccountCredential] = (),
    ) -> list[AccountCredential]:
        """
        Produce the reconciled credential set for a user.

        Args:
            user_id: The application user's ID
            session_credentials: Credentials carried in the user's session

        Returns:
            One credential per distinct account id (order not significant)

        Raises:
            AccountStoreError: If the store cannot be read
        """
        stored = await self.load_stored_credentials(user_id)
        merged = self.merge(stored, session_credentials)

        now = datetime.now(timezone.utc)
        reconciled = await asyncio.gather(
            *(self._finalize(credential, now) for credential in merged)
        )

        logger.info(
            f"Reconciled {len(reconciled)} Google account(s) for user {user_id} "
            f"({len(stored)} stored)"
        )
        return list(reconciled)
