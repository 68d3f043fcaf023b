"""
Authentication module for Year Calendar.

Keeps the OAuth tokens of every linked Google account usable: refreshes
them on demand and reconciles the stored copy with the session copy.
"""

from yearcal.auth.google_oauth import (
    GoogleOAuthClient,
    RefreshedToken,
)
from yearcal.auth.credentials import (
    AccountCredential,
    select_preferred_credential,
)
from yearcal.auth.account_store import (
    load_google_accounts,
    save_refreshed_tokens,
)
from yearcal.auth.reconciler import AccountReconciler
from yearcal.auth.session import SessionData, get_session_data, parse_session

__all__ = [
    # OAuth endpoints
    "GoogleOAuthClient",
    "RefreshedToken",
    # Credentials
    "AccountCredential",
    "select_preferred_credential",
    # Storage
    "load_google_accounts",
    "save_refreshed_tokens",
    # Reconciliation
    "AccountReconciler",
    # Session
    "SessionData",
    "get_session_data",
    "parse_session",
]
