"""
Helpers for faking Google's HTTP endpoints in tests.
"""

from typing import Callable

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


def mock_http_client(handler: Handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def token_response(access_token: str = "new-access", expires_in: int = 3600, **extra) -> httpx.Response:
    """Successful response from Google's token endpoint."""
    body = {"access_token": access_token, "expires_in": expires_in, "token_type": "Bearer", **extra}
    return httpx.Response(200, json=body)


def calendar_list_response(*calendar_ids: str, **extra) -> httpx.Response:
    """Successful calendarList.list response with one item per id."""
    items = [{"id": cid, "summary": f"Calendar {cid}", "accessRole": "owner"} for cid in calendar_ids]
    return httpx.Response(200, json={"kind": "calendar#calendarList", "items": items, **extra})
