"""
Google OAuth 2.0 token refresh and identity lookup.

Only the parts of the OAuth flow that happen after sign-in live here:
1. Exchange a refresh token for a new access token
2. Look up the e-mail address behind an access token

The consent/redirect flow itself is handled by the sign-in layer.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from yearcal.config import Settings, get_settings
from yearcal.exceptions import TokenRefreshError

logger = logging.getLogger(__name__)

# Google OAuth endpoints
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_OPENID_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_LEGACY_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

# Tried in order, first success wins
USERINFO_URLS = (GOOGLE_OPENID_USERINFO_URL, GOOGLE_LEGACY_USERINFO_URL)

DEFAULT_EXPIRES_IN = 3600


@dataclass(frozen=True)
class RefreshedToken:
    """
    Result of a refresh-token exchange.

    refresh_token is only set when Google rotated it; callers keep the
    previous refresh token otherwise.
    """

    access_token: str
    expires_at: datetime
    refresh_token: Optional[str] = None


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class GoogleOAuthClient:
    """
    Calls Google's OAuth endpoints on behalf of linked accounts.

    Stateless apart from the client credentials; the HTTP client is owned by
    the caller so one connection pool can serve every call of a request.

    Usage:
        async with httpx.AsyncClient() as http_client:
            oauth = GoogleOAuthClient(http_client)
            refreshed = await oauth.refresh_access_token(refresh_token)
            email = await oauth.fetch_email(refreshed.access_token)
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self._http = http_client
        self.client_id = settings.google_oauth_client_id
        self.client_secret = settings.google_oauth_client_secret

        if not self.client_id or not self.client_secret:
            logger.warning(
                "Google OAuth not configured. Set GOOGLE_OAUTH_CLIENT_ID and "
                "GOOGLE_OAUTH_CLIENT_SECRET in environment."
            )

    async def refresh_access_token(self, refresh_token: str) -> RefreshedToken:
        """
        Exchange a refresh token for a new access token.

        No retry is performed here.

        Args:
            refresh_token: The refresh token from the initial authorization

        Returns:
            RefreshedToken with the new access token and absolute expiry

        Raises:
            ValueError: If refresh_token is empty
            TokenRefreshError: If Google rejects the refresh or is unreachable
        """
        if not refresh_token:
            raise ValueError("refresh_token must be a non-empty string")

        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }

        try:
            response = await self._http.post(GOOGLE_TOKEN_URL, data=data)
        except httpx.HTTPError as e:
            raise TokenRefreshError(
                f"Token endpoint unreachable: {e}",
                original_error=e,
            )

        payload = _decode_body(response)

        if not response.is_success:
            raise TokenRefreshError(
                f"Token refresh rejected ({response.status_code})",
                status_code=response.status_code,
                payload=payload,
            )

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise TokenRefreshError(
                "Token endpoint response did not include an access token",
                status_code=response.status_code,
                payload=payload,
            )

        try:
            expires_in = int(payload.get("expires_in") or DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError):
            raise TokenRefreshError(
                "Token endpoint returned an invalid expires_in",
                status_code=response.status_code,
                payload=payload,
            )

        logger.debug("Refreshed Google access token")

        return RefreshedToken(
            access_token=payload["access_token"],
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
            refresh_token=payload.get("refresh_token") or None,
        )

    async def fetch_email(self, access_token: str) -> Optional[str]:
        """
        Best-effort lookup of the e-mail address behind an access token.

        Tries the OpenID userinfo endpoint, then the legacy OAuth2 one.

        Returns:
            The e-mail address, or None if neither endpoint yields one
        """
        headers = {"Authorization": f"Bearer {access_token}"}

        for url in USERINFO_URLS:
            try:
                response = await self._http.get(url, headers=headers)
            except httpx.HTTPError as e:
                logger.debug(f"Userinfo request to {url} failed: {e}")
                continue

            if not response.is_success:
                logger.debug(f"Userinfo request to {url} returned {response.status_code}")
                continue

            payload = _decode_body(response)
            if isinstance(payload, dict) and payload.get("email"):
                return payload["email"]

        return None
