"""
Custom exceptions for account and calendar operations.

Provides structured error handling with retryable flags. Only
AccountStoreError is allowed to abort a request; every other error is
captured per account and reported inline.
"""

from typing import Any, Optional


class YearCalendarError(Exception):
    """Base exception for Year Calendar operations."""

    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class TokenRefreshError(YearCalendarError):
    """
    The OAuth token endpoint rejected a refresh.

    Causes:
    - Refresh token revoked or expired
    - Client credentials misconfigured
    - Token endpoint unreachable (status_code is None)
    """

    retryable = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
        self.payload = payload


class MissingTokenError(YearCalendarError):
    """Account has no usable access token and no way to obtain one."""

    retryable = False


class UpstreamError(YearCalendarError):
    """Calendar API call returned a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        detail: Optional[str] = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
        self.detail = detail


class UpstreamAuthFailure(UpstreamError):
    """
    401 from the Calendar API.

    Resolved by at most one refresh-and-retry.
    """

    retryable = False


class UpstreamOtherFailure(UpstreamError):
    """
    Any other non-success Calendar API outcome.

    status_code is 0 when the request never produced a response.
    """

    retryable = True


class AccountStoreError(YearCalendarError):
    """
    Failure to read or write persisted account credentials.

    A read failure is the only error that aborts the whole request.
    """

    retryable = True
