"""
Session-embedded credentials.

The sign-in layer keeps the signed-in user and a copy of each linked
account's tokens in the cookie session:

    {
        "user": {"id": "..."},
        "googleAccounts": [
            {"accountId": "...", "email": "...", "accessToken": "...",
             "refreshToken": "...", "accessTokenExpires": 1767225600000}
        ]
    }

accessTokenExpires is milliseconds since the epoch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from yearcal.auth.credentials import AccountCredential

logger = logging.getLogger(__name__)


def _ms_to_datetime(ms: float) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


class SessionAccount(BaseModel):
    """One linked account as stored in the session."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    account_id: str = Field(..., alias="accountId", min_length=1)
    email: Optional[str] = None
    access_token: Optional[str] = Field(None, alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    access_token_expires: Optional[float] = Field(None, alias="accessTokenExpires", allow_inf_nan=False)

    @field_validator("access_token_expires")
    @classmethod
    def _representable_expiry(cls, value: Optional[float]) -> Optional[float]:
        if value:
            try:
                _ms_to_datetime(value)
            except (OverflowError, OSError, ValueError):
                raise ValueError(f"accessTokenExpires out of range: {value}")
        return value

    def to_credential(self) -> AccountCredential:
        expires_at = None
        if self.access_token_expires:
            expires_at = _ms_to_datetime(self.access_token_expires)
        return AccountCredential(
            account_id=self.account_id,
            email=self.email or None,
            access_token=self.access_token or None,
            refresh_token=self.refresh_token or None,
            expires_at=expires_at,
            source="session",
        )


@dataclass(frozen=True)
class SessionData:
    """Signed-in user plus the session copy of their linked accounts."""

    user_id: str
    accounts: list[AccountCredential] = field(default_factory=list)


def parse_session(raw: Optional[dict[str, Any]]) -> Optional[SessionData]:
    """
    Build SessionData from a raw session mapping.

    Returns None when there is no signed-in user. Malformed account entries
    are skipped.
    """
    if not raw:
        return None

    user = raw.get("user")
    user_id = user.get("id") if isinstance(user, dict) else None
    if not user_id:
        return None

    raw_accounts = raw.get("googleAccounts")
    if not isinstance(raw_accounts, list):
        raw_accounts = []

    accounts = []
    for entry in raw_accounts:
        try:
            accounts.append(SessionAccount.model_validate(entry).to_credential())
        except ValidationError as e:
            logger.warning(f"Skipping malformed session account for user {user_id}: {e.error_count()} errors")

    return SessionData(user_id=str(user_id), accounts=accounts)


def get_session_data(request: Request) -> Optional[SessionData]:
    """
    FastAPI dependency returning the signed-in session, if any.

    Requires SessionMiddleware to be installed.
    """
    return parse_session(dict(request.session))
