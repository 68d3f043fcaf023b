"""
Calendar API routes.

GET /calendars lists every calendar across the user's linked Google
accounts, with a per-account status so partial failures stay visible.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from yearcal.api.dependencies import get_account_reconciler, get_calendar_aggregator
from yearcal.api.models import CalendarsResponse, ErrorResponse
from yearcal.api.response_builder import build_calendars_response, empty_calendars_response
from yearcal.auth.reconciler import AccountReconciler
from yearcal.auth.session import SessionData, get_session_data
from yearcal.services.calendar_aggregator import CalendarAggregator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendars"])


@router.get(
    "/calendars",
    response_model=CalendarsResponse,
    response_model_exclude_none=True,
    summary="List calendars across linked Google accounts",
    responses={
        200: {"description": "Calendars (possibly partial; see accounts[].status)"},
        500: {"model": ErrorResponse, "description": "Linked accounts could not be loaded"},
    },
)
async def list_calendars(
    debug: bool = Query(False, description="Attach per-account diagnostic detail"),
    session_data: Optional[SessionData] = Depends(get_session_data),
    reconciler: AccountReconciler = Depends(get_account_reconciler),
    aggregator: CalendarAggregator = Depends(get_calendar_aggregator),
) -> CalendarsResponse:
    """
    List calendars for the signed-in user.

    Not being signed in is not an error: the response is simply empty.
    Per-account failures are reported in `accounts` and never change the
    status code.
    """
    if session_data is None:
        logger.debug("No signed-in user; returning empty calendar list")
        return empty_calendars_response()

    credentials = await reconciler.reconcile(session_data.user_id, session_data.accounts)
    if not credentials:
        return empty_calendars_response()

    aggregation = await aggregator.aggregate(credentials)

    if aggregation.failed_accounts:
        logger.warning(
            f"{len(aggregation.failed_accounts)} of {len(aggregation.accounts)} account(s) "
            f"failed for user {session_data.user_id}"
        )

    return build_calendars_response(aggregation, debug=debug)
