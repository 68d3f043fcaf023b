"""
Linked OAuth account models.

One row per linked provider account. Rows are created by the sign-in flow;
this service only reads them and rewrites their token columns after a
refresh.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from yearcal.models.base import BaseModel

GOOGLE_PROVIDER = "google"


class Account(BaseModel):
    """
    Stores OAuth tokens for one linked provider account.

    A user can link several Google accounts; each is identified by the
    provider's stable account id.

    Attributes:
        user_id: Owning application user
        provider: OAuth provider (currently only 'google')
        provider_account_id: Stable account id issued by the provider
        access_token: Current access token
        refresh_token: Refresh token for obtaining new access tokens
        expires_at: Access token expiry in seconds since the epoch
        token_type: Token type reported by the provider
        scope: OAuth scopes granted (space-separated)
    """

    __tablename__ = "accounts"

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        doc="Application user that linked this account"
    )

    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=GOOGLE_PROVIDER,
        doc="OAuth provider (google)"
    )

    provider_account_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Provider-issued account identifier"
    )

    access_token: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="OAuth access token"
    )

    refresh_token: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="OAuth refresh token (for obtaining new access tokens)"
    )

    expires_at: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        doc="Access token expiry (seconds since epoch)"
    )

    token_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        doc="Token type (usually Bearer)"
    )

    scope: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="OAuth scopes granted (space-separated)"
    )

    __table_args__ = (
        UniqueConstraint("provider", "provider_account_id", name="uq_accounts_provider_account"),
        Index("ix_accounts_user_provider", "user_id", "provider"),
    )

    @property
    def expiry(self) -> Optional[datetime]:
        """Access token expiry as an aware UTC datetime."""
        if not self.expires_at:
            return None
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    def __repr__(self) -> str:
        return (
            f"<Account(user_id={self.user_id}, provider={self.provider}, "
            f"provider_account_id={self.provider_account_id})>"
        )
