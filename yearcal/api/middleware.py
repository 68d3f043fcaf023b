"""
Request tracking for the HTTP API.

Every request gets a short id, exposed to log records through
RequestIdLogFilter and to clients through the X-Request-ID header.
"""

import logging
import re
import time
import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

# Accept a caller-supplied id only if it is short and log-safe
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger(__name__)


def get_request_id() -> str:
    return request_id_ctx.get()


class RequestIdLogFilter(logging.Filter):
    """Adds the current request ID to every log record as `request_id`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def _request_id_for(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    if _VALID_REQUEST_ID.match(incoming):
        return incoming
    return uuid.uuid4().hex[:8]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one line per request start and one per completion.

    Only the method and path are logged. Query strings and headers can carry
    tokens and are left out.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = _request_id_for(request)
        token = request_id_ctx.set(req_id)
        started = time.perf_counter()
        logger.info(f"{request.method} {request.url.path}")

        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(f"{response.status_code} in {elapsed_ms:.0f}ms")
            response.headers[REQUEST_ID_HEADER] = req_id
            return response
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(f"{request.method} {request.url.path} failed after {elapsed_ms:.0f}ms", exc_info=True)
            raise
        finally:
            request_id_ctx.reset(token)
