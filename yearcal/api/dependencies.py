"""
FastAPI dependency injection providers.

Provides the per-request HTTP client, Google clients, the account
reconciler and the calendar aggregator.
"""

from typing import AsyncGenerator

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from yearcal.auth.google_oauth import GoogleOAuthClient
from yearcal.auth.reconciler import AccountReconciler
from yearcal.config import Settings, get_settings
from yearcal.database import get_async_session
from yearcal.integrations.google_calendar.client import GoogleCalendarClient
from yearcal.services.calendar_aggregator import CalendarAggregator


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Dependency injection for the outbound HTTP client.

    One client per request, shared by every Google call made while serving
    it. Transport defaults apply for timeouts.
    """
    async with httpx.AsyncClient() as client:
        yield client


def get_oauth_client(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> GoogleOAuthClient:
    """Dependency injection for the Google OAuth client."""
    return GoogleOAuthClient(http_client, settings=settings)


def get_calendar_client(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> GoogleCalendarClient:
    """Dependency injection for the Calendar List client."""
    return GoogleCalendarClient(http_client, page_size=settings.calendar_list_page_size)


def get_account_reconciler(
    session: AsyncSession = Depends(get_async_session),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
    settings: Settings = Depends(get_settings),
) -> AccountReconciler:
    """Dependency injection for the account reconciler."""
    return AccountReconciler(
        session,
        oauth_client,
        refresh_leeway=settings.refresh_leeway,
    )


def get_calendar_aggregator(
    calendar_client: GoogleCalendarClient = Depends(get_calendar_client),
    oauth_client: GoogleOAuthClient = Depends(get_oauth_client),
) -> CalendarAggregator:
    """Dependency injection for the calendar aggregator."""
    return CalendarAggregator(calendar_client, oauth_client)
