"""
FastAPI application for Year Calendar.

Serves GET /calendars (every calendar across a user's linked Google
accounts) and GET /health. Run with `python -m yearcal.api.main` or point
uvicorn at `yearcal.app:app`.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.sessions import SessionMiddleware

from yearcal import __version__
from yearcal.api.calendar_routes import router as calendar_router
from yearcal.api.middleware import RequestIdLogFilter, RequestLoggingMiddleware
from yearcal.api.models import ErrorResponse, HealthResponse
from yearcal.config import get_settings
from yearcal.database import check_connection
from yearcal.exceptions import AccountStoreError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    """Send every log record through one handler that knows the request id."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdLogFilter())
    logging.basicConfig(level=level, handlers=[handler])


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info(f"Year Calendar API {__version__} starting ({settings.python_env})")
    if not settings.uses_google_oauth:
        logger.warning("Google OAuth client is not configured; token refresh will fail")

    yield

    logger.info("Year Calendar API stopped")


app = FastAPI(
    title="Year Calendar API",
    description="""
Aggregates calendars from every Google account a user has linked.

A failing account is not a failing request: it shows up in
`accounts[].status` / `accounts[].error` and the response is still 200.
Only a failure to read the linked accounts themselves returns 500.
    """,
    version=__version__,
    lifespan=lifespan,
)

_settings = get_settings()

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=_settings.session_secret_key,
    session_cookie=_settings.session_cookie_name,
    https_only=_settings.is_production,
)

app.include_router(calendar_router)


# =============================================================================
# Error responses
# =============================================================================


def _error_response(status_code: int, error_type: str, message: str, retryable: bool) -> JSONResponse:
    body = ErrorResponse(error_type=error_type, message=message, retryable=retryable)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(AccountStoreError)
async def account_store_error_handler(request: Request, exc: AccountStoreError):
    logger.error(f"Account store failure on {request.url.path}: {exc.message}")
    return _error_response(500, "account_store_error", "Linked accounts could not be loaded", exc.retryable)


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return _error_response(exc.status_code, "http_error", str(exc.detail), exc.status_code >= 500)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return _error_response(422, "validation_error", "; ".join(problems) or "Invalid request", False)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return _error_response(500, "internal_error", "An unexpected error occurred", True)


# =============================================================================
# Health
# =============================================================================


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Liveness plus a database round trip."""
    database_connected = await check_connection()
    return HealthResponse(
        status="healthy" if database_connected else "unhealthy",
        version=__version__,
        database_connected=database_connected,
    )


def run_server(host: Optional[str] = None, port: Optional[int] = None, reload: Optional[bool] = None):
    """Run under uvicorn, defaulting to the API_* settings."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "yearcal.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_reload if reload is None else reload,
    )


if __name__ == "__main__":
    run_server()
