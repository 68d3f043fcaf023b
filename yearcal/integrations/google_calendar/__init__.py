"""
Google Calendar integration for Year Calendar.
"""

from yearcal.integrations.google_calendar.client import (
    CALENDAR_LIST_URL,
    CalendarListPage,
    GoogleCalendarClient,
    extract_error_message,
)

__all__ = [
    "CALENDAR_LIST_URL",
    "CalendarListPage",
    "GoogleCalendarClient",
    "extract_error_message",
]
