"""
Pydantic response models for the Year Calendar API.

Field names are camelCase on the wire.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class CalendarEntryModel(ApiModel):
    """Calendar visible to the user, namespaced by owning account."""

    id: str = Field(..., description="Composite id: '<accountId>|<calendarId>'")
    original_id: str = Field(..., description="Google calendar id")
    account_id: str
    account_email: Optional[str] = None
    summary: str
    primary: bool = False
    background_color: Optional[str] = None
    access_role: Optional[str] = None


class AccountFetchResult(ApiModel):
    """Per-account outcome of the calendar fetch."""

    account_id: str
    email: Optional[str] = None
    status: int = Field(..., description="HTTP status of the final attempt, 0 if no request was made")
    error: Optional[str] = None


class AccountDebugInfo(ApiModel):
    """Raw diagnostic detail for one account (debug mode)."""

    account_id: str
    status: int
    error: Optional[str] = None
    error_type: Optional[str] = None
    refresh_attempted: bool = False


class CalendarsResponse(ApiModel):
    """Response for GET /calendars."""

    calendars: list[CalendarEntryModel] = Field(default_factory=list)
    accounts: list[AccountFetchResult] = Field(default_factory=list)
    debug: Optional[list[AccountDebugInfo]] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"]
    version: str
    database_connected: bool


class ErrorResponse(BaseModel):
    """Error body returned by the exception handlers."""

    error_type: str
    message: str
    retryable: bool = False
