"""Tests for AccountReconciler."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from yearcal.auth.google_oauth import GoogleOAuthClient, RefreshedToken
from yearcal.auth.reconciler import AccountReconciler
from yearcal.exceptions import AccountStoreError, TokenRefreshError
from yearcal.models.accounts import Account


def _epoch(delta: timedelta) -> int:
    return int((datetime.now(timezone.utc) + delta).timestamp())


def _store_account(account_id: str, expires_in: timedelta | None, refresh_token="stored-refresh") -> Account:
    return Account(
        user_id="user-1",
        provider="google",
        provider_account_id=account_id,
        access_token=f"stored-{account_id}",
        refresh_token=refresh_token,
        expires_at=_epoch(expires_in) if expires_in is not None else None,
    )


@pytest.fixture
def oauth_client():
    client = AsyncMock(spec=GoogleOAuthClient)
    client.refresh_access_token.return_value = RefreshedToken(
        access_token="refreshed-access",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )
    client.fetch_email.return_value = "someone@example.com"
    return client


class TestLoadStoredCredentials:
    """Tests for AccountReconciler.load_stored_credentials."""

    @pytest.mark.asyncio
    async def test_fresh_credentials_untouched(self, db_session, oauth_client):
        db_session.add(_store_account("acct-1", timedelta(hours=1)))
        await db_session.commit()

        (credential,) = await AccountReconciler(db_session, oauth_client).load_stored_credentials("user-1")

        assert credential.access_token == "stored-acct-1"
        oauth_client.refresh_access_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_credentials_refreshed_and_persisted(self, db_session, oauth_client):
        account = _store_account("acct-1", timedelta(seconds=-30))
        db_session.add(account)
        await db_session.commit()

        (credential,) = await AccountReconciler(db_session, oauth_client).load_stored_credentials("user-1")

        assert credential.access_token == "refreshed-access"
        assert credential.refresh_token == "stored-refresh"
        oauth_client.refresh_access_token.assert_awaited_once_with("stored-refresh")

        await db_session.refresh(account)
        assert account.access_token == "refreshed-access"
        assert account.expires_at == int(credential.expires_at.timestamp())

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_stored_token(self, db_session, oauth_client):
        account = _store_account("acct-1", timedelta(seconds=-30))
        db_session.add(account)
        await db_session.commit()
        oauth_client.refresh_access_token.side_effect = TokenRefreshError("invalid_grant", status_code=400)

        (credential,) = await AccountReconciler(db_session, oauth_client).load_stored_credentials("user-1")

        assert credential.access_token == "stored-acct-1"
        await db_session.refresh(account)
        assert account.access_token == "stored-acct-1"

    @pytest.mark.asyncio
    async def test_persist_failure_still_uses_refreshed_token(self, db_session, oauth_client):
        db_session.add(_store_account("acct-1", timedelta(seconds=-30)))
        await db_session.commit()

        with patch(
            "yearcal.auth.reconciler.save_refreshed_tokens",
            AsyncMock(side_effect=AccountStoreError("write failed")),
        ):
            (credential,) = await AccountReconciler(db_session, oauth_client).load_stored_credentials("user-1")

        assert credential.access_token == "refreshed-access"

    @pytest.mark.asyncio
    async def test_store_read_failure_propagates(self, oauth_client):
        with patch(
            "yearcal.auth.reconciler.load_google_accounts",
            AsyncMock(side_effect=AccountStoreError("read failed")),
        ):
            with pytest.raises(AccountStoreError):
                await AccountReconciler(AsyncMock(), oauth_client).load_stored_credentials("user-1")


class TestMerge:
    """Tests for AccountReconciler.merge."""

    def test_disjoint_accounts_are_unioned(self, make_credential):
        merged = AccountReconciler.merge(
            [make_credential(account_id="a")],
            [make_credential(account_id="b", source="session")],
        )

        assert sorted(c.account_id for c in merged) == ["a", "b"]

    def test_fresher_session_copy_wins(self, make_credential):
        stored = make_credential(access_token="old", expires_in=60)
        session = make_credential(access_token="new", expires_in=3600, source="session")

        (merged,) = AccountReconciler.merge([stored], [session])

        assert merged.access_token == "new"

    def test_stale_session_copy_loses(self, make_credential):
        stored = make_credential(access_token="stored", expires_in=3600)
        session = make_credential(access_token="session", expires_in=60, source="session")

        (merged,) = AccountReconciler.merge([stored], [session])

        assert merged.access_token == "stored"

    def test_email_kept_from_losing_copy(self, make_credential):
        stored = make_credential(expires_in=60, email="kept@example.com")
        session = make_credential(expires_in=3600, email=None, source="session")

        (merged,) = AccountReconciler.merge([stored], [session])

        assert merged.email == "kept@example.com"
        assert merged.source == "session"

    def test_duplicate_session_entries_collapse(self, make_credential):
        merged = AccountReconciler.merge(
            [],
            [
                make_credential(access_token="first", expires_in=60, source="session"),
                make_credential(access_token="second", expires_in=3600, source="session"),
            ],
        )

        assert [c.access_token for c in merged] == ["second"]


class TestReconcile:
    """Tests for AccountReconciler.reconcile."""

    @pytest.mark.asyncio
    async def test_session_only_account_included(self, db_session, oauth_client, make_credential):
        db_session.add(_store_account("stored", timedelta(hours=1)))
        await db_session.commit()
        session_credential = make_credential(account_id="session-only", email="s@example.com", source="session")

        reconciled = await AccountReconciler(db_session, oauth_client).reconcile("user-1", [session_credential])

        by_id = {c.account_id: c for c in reconciled}
        assert set(by_id) == {"stored", "session-only"}
        assert by_id["session-only"].email == "s@example.com"
        assert by_id["stored"].email == "someone@example.com"

    @pytest.mark.asyncio
    async def test_stale_session_credential_refreshed_but_not_persisted(
        self, db_session, oauth_client, make_credential
    ):
        session_credential = make_credential(
            account_id="session-only", expires_in=-30, email="s@example.com", source="session"
        )

        with patch("yearcal.auth.reconciler.save_refreshed_tokens", AsyncMock()) as save:
            (credential,) = await AccountReconciler(db_session, oauth_client).reconcile(
                "user-1", [session_credential]
            )

        assert credential.access_token == "refreshed-access"
        save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_email_lookup_failure_leaves_email_empty(self, db_session, oauth_client, make_credential):
        oauth_client.fetch_email.return_value = None

        (credential,) = await AccountReconciler(db_session, oauth_client).reconcile(
            "user-1", [make_credential(source="session")]
        )

        assert credential.email is None

    @pytest.mark.asyncio
    async def test_account_without_access_token_kept(self, db_session, oauth_client, make_credential):
        credential = make_credential(access_token=None, refresh_token=None, expires_in=None, source="session")

        (reconciled,) = await AccountReconciler(db_session, oauth_client).reconcile("user-1", [credential])

        assert reconciled.access_token is None
        oauth_client.fetch_email.assert_not_awaited()
        oauth_client.refresh_access_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_accounts(self, db_session, oauth_client):
        assert await AccountReconciler(db_session, oauth_client).reconcile("user-1") == []
