"""
Response builder utilities for transforming aggregation results to API responses.
"""

from yearcal.api.models import (
    AccountDebugInfo,
    AccountFetchResult,
    CalendarEntryModel,
    CalendarsResponse,
)
from yearcal.services.calendar_aggregator import (
    AccountFetchOutcome,
    CalendarAggregation,
    CalendarEntry,
)


def empty_calendars_response() -> CalendarsResponse:
    """Response for a signed-out user or a user with no linked accounts."""
    return CalendarsResponse(calendars=[], accounts=[])


def _calendar_entry(entry: CalendarEntry) -> CalendarEntryModel:
    return CalendarEntryModel(
        id=entry.id,
        original_id=entry.original_id,
        account_id=entry.account_id,
        account_email=entry.account_email,
        summary=entry.summary,
        primary=entry.primary,
        background_color=entry.background_color,
        access_role=entry.access_role,
    )


def _account_summary(outcome: AccountFetchOutcome) -> AccountFetchResult:
    return AccountFetchResult(
        account_id=outcome.account_id,
        email=outcome.email,
        status=outcome.status,
        error=outcome.error,
    )


def _account_debug(outcome: AccountFetchOutcome) -> AccountDebugInfo:
    return AccountDebugInfo(
        account_id=outcome.account_id,
        status=outcome.status,
        error=outcome.error,
        error_type=outcome.error_type,
        refresh_attempted=outcome.refresh_attempted,
    )


def build_calendars_response(aggregation: CalendarAggregation, debug: bool = False) -> CalendarsResponse:
    """
    Build CalendarsResponse from an aggregation.

    Args:
        aggregation: Result of CalendarAggregator.aggregate
        debug: Attach per-account diagnostic detail

    Returns:
        CalendarsResponse ready for API return
    """
    return CalendarsResponse(
        calendars=[_calendar_entry(entry) for entry in aggregation.calendars],
        accounts=[_account_summary(outcome) for outcome in aggregation.accounts],
        debug=[_account_debug(outcome) for outcome in aggregation.accounts] if debug else None,
    )
