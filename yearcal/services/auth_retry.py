"""
Refresh-and-retry-once execution of an authorized Google API call.

Per account, within one pass:

    REQUESTING -> SUCCESS
    REQUESTING -> FAILED                  (non-401, or 401 without refresh token)
    REQUESTING -> REFRESHING -> REQUESTING -> SUCCESS | FAILED
    REFRESHING -> FAILED                  (refresh rejected; original 401 kept)

There is exactly one refresh attempt per pass. No state is revisited after
SUCCESS or FAILED.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from yearcal.auth.credentials import AccountCredential
from yearcal.auth.google_oauth import GoogleOAuthClient
from yearcal.exceptions import TokenRefreshError, UpstreamAuthFailure, UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallState(str, Enum):
    REQUESTING = "requesting"
    REFRESHING = "refreshing"
    SUCCESS = "success"
    FAILED = "failed"


TERMINAL_STATES = frozenset({CallState.SUCCESS, CallState.FAILED})


@dataclass
class AuthRetryResult(Generic[T]):
    """
    Outcome of one pass.

    Attributes:
        state: SUCCESS or FAILED
        value: Operation result on success
        error: Upstream failure that ended the pass
        access_token: Token used by the last request
        refresh_attempted: Whether a refresh was tried
        refresh_error: Refresh failure, if the refresh was rejected
    """

    state: CallState
    access_token: str
    value: Optional[T] = None
    error: Optional[UpstreamError] = None
    refresh_attempted: bool = False
    refresh_error: Optional[TokenRefreshError] = None

    @property
    def ok(self) -> bool:
        return self.state is CallState.SUCCESS


async def run_with_auth_retry(
    credential: AccountCredential,
    operation: Callable[[str], Awaitable[T]],
    oauth_client: GoogleOAuthClient,
) -> AuthRetryResult[T]:
    """
    Run an authorized operation, refreshing and retrying once on 401.

    Args:
        credential: Account whose access token is used; must have one
        operation: Coroutine function taking an access token, raising
            UpstreamAuthFailure on 401 and UpstreamError otherwise
        oauth_client: Used for the single refresh

    Returns:
        AuthRetryResult in a terminal state
    """
    if not credential.access_token:
        raise ValueError(f"Account {credential.account_id} has no access token")

    result: AuthRetryResult[T] = AuthRetryResult(
        state=CallState.REQUESTING,
        access_token=credential.access_token,
    )

    while result.state not in TERMINAL_STATES:
        if result.state is CallState.REQUESTING:
            try:
                result.value = await operation(result.access_token)
            except UpstreamAuthFailure as e:
                result.error = e
                if credential.refresh_token and not result.refresh_attempted:
                    result.state = CallState.REFRESHING
                else:
                    result.state = CallState.FAILED
            except UpstreamError as e:
                result.error = e
                result.state = CallState.FAILED
            else:
                result.error = None
                result.state = CallState.SUCCESS

        elif result.state is CallState.REFRESHING:
            result.refresh_attempted = True
            try:
                refreshed = await oauth_client.refresh_access_token(credential.refresh_token)
            except TokenRefreshError as e:
                logger.warning(
                    f"Refresh after 401 failed for account {credential.account_id} "
                    f"(status={e.status_code})"
                )
                result.refresh_error = e
                result.state = CallState.FAILED
            else:
                logger.info(f"Retrying account {credential.account_id} with refreshed token")
                result.access_token = refreshed.access_token
                result.state = CallState.REQUESTING

    return result
