"""
Account credential records and the precedence rule used to reconcile them.

Everything in this module is pure: no network, no storage.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from yearcal.auth.google_oauth import RefreshedToken

CredentialSource = Literal["store", "session"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class AccountCredential:
    """
    Tokens for one linked Google account.

    Attributes:
        account_id: Provider-issued account id, unique per user
        access_token: Bearer token for the Calendar API (may be missing)
        email: Account e-mail, resolved lazily
        refresh_token: Long-lived token used to mint access tokens
        expires_at: Access token expiry (aware UTC), None if unknown
        source: Where this copy came from
    """

    account_id: str
    access_token: Optional[str] = None
    email: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    source: CredentialSource = "store"

    def needs_refresh(self, now: datetime, leeway: timedelta) -> bool:
        """True when the token is unknown-expiry or near expiry and can be refreshed."""
        if not self.refresh_token:
            return False
        if self.expires_at is None:
            return True
        return self.expires_at < now + leeway

    def with_refreshed(self, refreshed: RefreshedToken) -> "AccountCredential":
        """Copy with a freshly minted access token, keeping the old refresh token unless rotated."""
        return replace(
            self,
            access_token=refreshed.access_token,
            expires_at=refreshed.expires_at,
            refresh_token=refreshed.refresh_token or self.refresh_token,
        )

    def __repr__(self) -> str:
        # Tokens stay out of logs and tracebacks
        return (
            f"<AccountCredential(account_id={self.account_id}, source={self.source}, "
            f"expires_at={self.expires_at}, has_refresh_token={bool(self.refresh_token)})>"
        )


def select_preferred_credential(
    existing: AccountCredential,
    candidate: AccountCredential,
) -> AccountCredential:
    """
    Pick the fresher of two copies of the same account's credentials.

    Refresh-token presence outranks expiry: a copy that can be refreshed
    beats one that cannot. Between equals, the later expiry wins (unknown
    expiry counts as the epoch). The candidate must strictly improve on the
    existing copy to replace it.

    Args:
        existing: Copy already selected (usually from the store)
        candidate: Competing copy (usually from the session)

    Returns:
        The winning credential
    """
    if existing.account_id != candidate.account_id:
        raise ValueError(
            f"Cannot reconcile different accounts: {existing.account_id} != {candidate.account_id}"
        )

    existing_refreshable = bool(existing.refresh_token)
    candidate_refreshable = bool(candidate.refresh_token)
    if candidate_refreshable != existing_refreshable:
        return candidate if candidate_refreshable else existing

    existing_expiry = existing.expires_at or _EPOCH
    candidate_expiry = candidate.expires_at or _EPOCH
    if candidate_expiry > existing_expiry:
        return candidate
    return existing
