"""Tests for AccountCredential and the credential precedence rule."""

from datetime import timedelta

import pytest

from yearcal.auth.credentials import select_preferred_credential
from yearcal.auth.google_oauth import RefreshedToken

LEEWAY = timedelta(seconds=60)


class TestNeedsRefresh:
    """Tests for AccountCredential.needs_refresh."""

    def test_fresh_token_does_not_need_refresh(self, make_credential, now):
        assert make_credential(expires_in=3600).needs_refresh(now, LEEWAY) is False

    def test_expired_token_needs_refresh(self, make_credential, now):
        assert make_credential(expires_in=-10).needs_refresh(now, LEEWAY) is True

    def test_token_inside_leeway_needs_refresh(self, make_credential, now):
        assert make_credential(expires_in=30).needs_refresh(now, LEEWAY) is True

    def test_unknown_expiry_needs_refresh(self, make_credential, now):
        assert make_credential(expires_in=None).needs_refresh(now, LEEWAY) is True

    def test_no_refresh_token_never_refreshes(self, make_credential, now):
        credential = make_credential(refresh_token=None, expires_in=-10)
        assert credential.needs_refresh(now, LEEWAY) is False


class TestWithRefreshed:
    """Tests for AccountCredential.with_refreshed."""

    def test_keeps_refresh_token_when_not_rotated(self, make_credential, now):
        credential = make_credential(email="a@example.com")
        expires = now + timedelta(hours=1)

        updated = credential.with_refreshed(RefreshedToken(access_token="new", expires_at=expires))

        assert updated.access_token == "new"
        assert updated.expires_at == expires
        assert updated.refresh_token == "refresh-1"
        assert updated.email == "a@example.com"
        assert credential.access_token == "access-1"

    def test_takes_rotated_refresh_token(self, make_credential, now):
        refreshed = RefreshedToken(access_token="new", expires_at=now, refresh_token="rotated")
        assert make_credential().with_refreshed(refreshed).refresh_token == "rotated"


def test_repr_hides_tokens(make_credential):
    text = repr(make_credential(access_token="secret-access", refresh_token="secret-refresh"))
    assert "secret-access" not in text
    assert "secret-refresh" not in text
    assert "acct-1" in text


class TestSelectPreferredCredential:
    """Tests for select_preferred_credential."""

    def test_refreshable_candidate_beats_non_refreshable(self, make_credential):
        existing = make_credential(refresh_token=None, expires_in=7200)
        candidate = make_credential(refresh_token="r", expires_in=60, source="session")

        assert select_preferred_credential(existing, candidate) is candidate

    def test_refreshable_existing_beats_later_expiring_candidate(self, make_credential):
        existing = make_credential(refresh_token="r", expires_in=60)
        candidate = make_credential(refresh_token=None, expires_in=7200, source="session")

        assert select_preferred_credential(existing, candidate) is existing

    def test_later_expiry_wins_between_equals(self, make_credential):
        existing = make_credential(expires_in=60)
        candidate = make_credential(expires_in=3600, source="session")

        assert select_preferred_credential(existing, candidate) is candidate

    def test_earlier_expiry_loses(self, make_credential):
        existing = make_credential(expires_in=3600)
        candidate = make_credential(expires_in=60, source="session")

        assert select_preferred_credential(existing, candidate) is existing

    def test_tie_keeps_existing(self, make_credential):
        existing = make_credential(expires_in=3600)
        candidate = make_credential(expires_in=3600, source="session")

        assert select_preferred_credential(existing, candidate) is existing

    def test_unknown_expiry_counts_as_epoch(self, make_credential):
        existing = make_credential(expires_in=None)
        candidate = make_credential(expires_in=-3600, source="session")

        assert select_preferred_credential(existing, candidate) is candidate

    def test_both_unknown_keeps_existing(self, make_credential):
        existing = make_credential(refresh_token=None, expires_in=None)
        candidate = make_credential(refresh_token=None, expires_in=None, source="session")

        assert select_preferred_credential(existing, candidate) is existing

    def test_different_accounts_rejected(self, make_credential):
        with pytest.raises(ValueError):
            select_preferred_credential(
                make_credential(account_id="a"),
                make_credential(account_id="b"),
            )
