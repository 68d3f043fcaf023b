"""
Settings for the Year Calendar service.

Read from the environment (or a .env file) by pydantic-settings. Call
get_settings() rather than constructing Settings directly so every module
shares one instance.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SESSION_SECRET = "dev-insecure-session-secret"

# Async drivers substituted into the sync DATABASE_URL
_ASYNC_DRIVERS = {
    "sqlite:///": "sqlite+aiosqlite:///",
    "postgresql://": "postgresql+asyncpg://",
}


class Settings(BaseSettings):
    """
    Environment-driven configuration.

    See .env.example for every variable.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="development or production"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level"
    )

    # Linked account storage (sync URL; the async driver is derived)
    database_url: str = Field(
        default="sqlite:///./data/year_calendar.db",
        description="SQLAlchemy URL of the accounts database"
    )

    # HTTP server
    api_host: str = Field(default="0.0.0.0", description="Bind address")
    api_port: int = Field(default=8000, description="Bind port")
    api_reload: bool = Field(default=True, description="Uvicorn auto-reload")

    # OAuth client used to refresh linked-account tokens
    google_oauth_client_id: str = Field(
        default="",
        description="OAuth client ID the linked accounts were granted to"
    )
    google_oauth_client_secret: str = Field(
        default="",
        description="Secret for google_oauth_client_id"
    )

    # Signed cookie session written by the sign-in layer
    session_secret_key: str = Field(
        default=DEFAULT_SESSION_SECRET,
        description="Key the session cookie is signed with"
    )
    session_cookie_name: str = Field(
        default="year_calendar_session",
        description="Session cookie name"
    )

    # Token lifecycle
    token_refresh_leeway_seconds: int = Field(
        default=60,
        ge=0,
        description="Refresh access tokens expiring within this many seconds"
    )

    # Calendar List API
    calendar_list_page_size: int = Field(
        default=250,
        ge=1,
        le=250,
        description="maxResults for the Calendar List request (first page only)"
    )

    @property
    def is_production(self) -> bool:
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        return self.database_url.lower().startswith("postgresql")

    @property
    def uses_google_oauth(self) -> bool:
        """True when both halves of the OAuth client credentials are set."""
        return bool(self.google_oauth_client_id and self.google_oauth_client_secret)

    @property
    def async_database_url(self) -> str:
        """database_url with its async driver (aiosqlite / asyncpg) filled in."""
        for prefix, async_prefix in _ASYNC_DRIVERS.items():
            if self.database_url.startswith(prefix):
                return async_prefix + self.database_url[len(prefix):]
        return self.database_url

    @property
    def refresh_leeway(self) -> timedelta:
        return timedelta(seconds=self.token_refresh_leeway_seconds)

    def validate_production_config(self) -> None:
        """
        Refuse to run in production with development defaults.

        Production needs PostgreSQL, OAuth client credentials (without them
        every refresh fails), and a session secret other than the built-in
        one.

        Raises:
            ValueError: Listing every problem found
        """
        if not self.is_production:
            return

        problems = []
        if not self.uses_postgresql:
            problems.append("DATABASE_URL must point at PostgreSQL in production.")
        if not self.uses_google_oauth:
            problems.append(
                "GOOGLE_OAUTH_CLIENT_ID and GOOGLE_OAUTH_CLIENT_SECRET are required in production."
            )
        if self.session_secret_key == DEFAULT_SESSION_SECRET:
            problems.append("SESSION_SECRET_KEY must be set in production.")

        if problems:
            raise ValueError("Invalid production configuration:\n- " + "\n- ".join(problems))


@lru_cache()
def get_settings() -> Settings:
    """Process-wide Settings instance."""
    return Settings()
