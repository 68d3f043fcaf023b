"""
Service layer for Year Calendar.

Business logic that sits between the API and the Google integrations.
"""

from yearcal.services.auth_retry import AuthRetryResult, CallState, run_with_auth_retry
from yearcal.services.calendar_aggregator import (
    AccountFetchOutcome,
    CalendarAggregation,
    CalendarAggregator,
    CalendarEntry,
    namespaced_calendar_id,
)

__all__ = [
    "AuthRetryResult",
    "CallState",
    "run_with_auth_retry",
    "AccountFetchOutcome",
    "CalendarAggregation",
    "CalendarAggregator",
    "CalendarEntry",
    "namespaced_calendar_id",
]
