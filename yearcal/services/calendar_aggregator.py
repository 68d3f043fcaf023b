"""
Calendar aggregation across linked Google accounts.

Fans out one Calendar List request per account, retries once on 401 with a
refreshed token, and flattens the results into a single list namespaced by
account. Every account yields exactly one outcome, whatever happened to it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from yearcal.auth.credentials import AccountCredential
from yearcal.auth.google_oauth import GoogleOAuthClient
from yearcal.exceptions import MissingTokenError, UpstreamError, YearCalendarError
from yearcal.integrations.google_calendar.client import CalendarListPage, GoogleCalendarClient
from yearcal.services.auth_retry import run_with_auth_retry

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "missing access token"
UNTITLED_CALENDAR = "(Untitled)"


def namespaced_calendar_id(account_id: str, calendar_id: str) -> str:
    """Composite id unique across accounts."""
    return f"{account_id}|{calendar_id}"


@dataclass(frozen=True)
class CalendarEntry:
    """One calendar, owned by one linked account."""

    id: str
    original_id: str
    account_id: str
    account_email: Optional[str]
    summary: str
    primary: bool
    background_color: Optional[str] = None
    access_role: Optional[str] = None


@dataclass
class AccountFetchOutcome:
    """
    Result of fetching one account's calendars.

    status is the HTTP status of the final attempt, 0 when no response was
    obtained.
    """

    account_id: str
    email: Optional[str]
    status: int
    items: list[dict] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    refresh_attempted: bool = False

    @property
    def ok(self) -> bool:
        return self.error_type is None


@dataclass
class CalendarAggregation:
    """Flattened calendars plus one outcome per account, in input order."""

    calendars: list[CalendarEntry]
    accounts: list[AccountFetchOutcome]

    @property
    def failed_accounts(self) -> list[AccountFetchOutcome]:
        return [outcome for outcome in self.accounts if not outcome.ok]


def _failure(
    credential: AccountCredential,
    error: YearCalendarError,
    status: int,
    **kwargs,
) -> AccountFetchOutcome:
    detail = error.detail if isinstance(error, UpstreamError) else error.message
    return AccountFetchOutcome(
        account_id=credential.account_id,
        email=credential.email,
        status=status,
        error=detail,
        error_type=type(error).__name__,
        **kwargs,
    )


def to_calendar_entries(outcome: AccountFetchOutcome) -> list[CalendarEntry]:
    """Namespace one account's raw calendarList items."""
    entries = []
    for item in outcome.items:
        if not isinstance(item, dict):
            continue
        calendar_id = item.get("id")
        if not calendar_id:
            continue
        entries.append(
            CalendarEntry(
                id=namespaced_calendar_id(outcome.account_id, calendar_id),
                original_id=calendar_id,
                account_id=outcome.account_id,
                account_email=outcome.email,
                summary=item.get("summary") or UNTITLED_CALENDAR,
                primary=bool(item.get("primary")),
                background_color=item.get("backgroundColor"),
                access_role=item.get("accessRole"),
            )
        )
    return entries


class CalendarAggregator:
    """
    Retrieves and merges calendar lists for a reconciled credential set.

    Usage:
        aggregator = CalendarAggregator(GoogleCalendarClient(http), GoogleOAuthClient(http))
        aggregation = await aggregator.aggregate(credentials)
    """

    def __init__(self, calendar_client: GoogleCalendarClient, oauth_client: GoogleOAuthClient):
        self._calendars = calendar_client
        self._oauth = oauth_client

    async def fetch_account(self, credential: AccountCredential) -> AccountFetchOutcome:
        """Fetch one account's calendars. Never raises for upstream failures."""
        if not credential.access_token:
            error = MissingTokenError(MISSING_TOKEN_MESSAGE)
            logger.warning(f"Account {credential.account_id} has no access token; skipping")
            return _failure(credential, error, status=0)

        result = await run_with_auth_retry(
            credential,
            self._calendars.list_calendars,
            self._oauth,
        )

        if not result.ok:
            logger.warning(
                f"Calendar list failed for account {credential.account_id}: "
                f"{result.error.status_code} {result.error.detail}"
            )
            return _failure(
                credential,
                result.error,
                status=result.error.status_code,
                refresh_attempted=result.refresh_attempted,
            )

        page: CalendarListPage = result.value
        return AccountFetchOutcome(
            account_id=credential.account_id,
            email=credential.email,
            status=page.status_code,
            items=page.items,
            refresh_attempted=result.refresh_attempted,
        )

    async def aggregate(self, credentials: Sequence[AccountCredential]) -> CalendarAggregation:
        """
        Fetch every account concurrently and flatten the results.

        A slow or failing account delays the result but never cancels or
        alters its siblings.

        Args:
            credentials: Reconciled credentials, one per account

        Returns:
            CalendarAggregation with one outcome per credential
        """
        if not credentials:
            return CalendarAggregation(calendars=[], accounts=[])

        outcomes = await asyncio.gather(
            *(self.fetch_account(credential) for credential in credentials)
        )

        calendars = [entry for outcome in outcomes for entry in to_calendar_entries(outcome)]
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info(
            f"Aggregated {len(calendars)} calendar(s) from {len(outcomes)} account(s), "
            f"{failed} failed"
        )
        return CalendarAggregation(calendars=calendars, accounts=list(outcomes))
