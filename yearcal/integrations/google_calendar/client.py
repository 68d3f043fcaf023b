"""
Google Calendar List API client.

Thin async wrapper over calendarList.list with consistent error handling.
Retries are not performed here; see yearcal.services.auth_retry.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from yearcal.exceptions import UpstreamAuthFailure, UpstreamOtherFailure

logger = logging.getLogger(__name__)

CALENDAR_LIST_URL = "https://www.googleapis.com/calendar/v3/users/me/calendarList"

# Google caps calendarList.list pages at 250 entries
MAX_PAGE_SIZE = 250


@dataclass
class CalendarListPage:
    """First page of a calendarList.list response."""

    status_code: int
    items: list[dict] = field(default_factory=list)
    next_page_token: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return bool(self.next_page_token)


def extract_error_message(payload: Any) -> Optional[str]:
    """
    Pull a human-readable message out of a Google error body.

    Looks at error.message, then error_description.
    """
    if not isinstance(payload, dict):
        return None

    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return error["message"]

    description = payload.get("error_description")
    if description:
        return description
    return None


def _handle_error_response(response: httpx.Response) -> None:
    """Convert a non-success response to the matching upstream error."""
    status = response.status_code
    try:
        detail = extract_error_message(response.json())
    except ValueError:
        detail = None

    if status == 401:
        raise UpstreamAuthFailure(
            "Calendar API rejected the access token",
            status_code=status,
            detail=detail,
        )
    raise UpstreamOtherFailure(
        f"Calendar API error ({status}): {detail}",
        status_code=status,
        detail=detail,
    )


class GoogleCalendarClient:
    """
    Calls the Calendar List endpoint for one access token at a time.

    Only the first page of results is read. Accounts with more calendars
    than page_size see a truncated list.
    """

    def __init__(self, http_client: httpx.AsyncClient, page_size: int = MAX_PAGE_SIZE):
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        self._http = http_client
        self.page_size = page_size

    async def list_calendars(self, access_token: str) -> CalendarListPage:
        """
        List calendars the token's owner can read.

        Args:
            access_token: Bearer token for the account

        Returns:
            First page of calendarList entries

        Raises:
            UpstreamAuthFailure: On 401
            UpstreamOtherFailure: On any other failure (status 0 if no response)
        """
        params = {
            "minAccessRole": "reader",
            "maxResults": self.page_size,
        }
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            response = await self._http.get(CALENDAR_LIST_URL, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise UpstreamOtherFailure(
                f"Calendar API request failed: {e}",
                status_code=0,
                detail=str(e) or type(e).__name__,
                original_error=e,
            )

        if not response.is_success:
            _handle_error_response(response)

        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            raise UpstreamOtherFailure(
                "Calendar API returned an unexpected body",
                status_code=response.status_code,
                detail="invalid response body",
            )

        items = data.get("items")
        if not isinstance(items, list):
            items = []

        page = CalendarListPage(
            status_code=response.status_code,
            items=[item for item in items if isinstance(item, dict)],
            next_page_token=data.get("nextPageToken"),
        )
        if page.truncated:
            logger.warning(
                f"Calendar list truncated at {self.page_size} entries; further pages are not fetched"
            )
        return page
