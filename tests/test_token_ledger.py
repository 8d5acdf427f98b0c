"""Tests for the refresh-token ledger."""
from datetime import timedelta

from models.base_model import utcnow


def _create(ledger, account_id, value, expires_in=timedelta(days=1)):
    return ledger.create_token(account_id, value, utcnow() + expires_in)


class TestLookup:
    def test_find_valid_token(self, ledger, registered):
        _create(ledger, registered.account.id, "token-a")
        assert ledger.find_valid_token("token-a").account_id == registered.account.id

    def test_unknown_token(self, ledger, registered):
        assert ledger.find_token("nope") is None
        assert ledger.find_valid_token("nope") is None

    def test_expired_token_is_found_but_not_valid(self, ledger, registered):
        _create(ledger, registered.account.id, "old", expires_in=timedelta(seconds=-1))
        assert ledger.find_token("old") is not None
        assert ledger.find_valid_token("old") is None

    def test_revoked_token_is_found_but_not_valid(self, ledger, registered):
        _create(ledger, registered.account.id, "token-a")
        ledger.revoke_token("token-a")
        record = ledger.find_token("token-a")
        assert record.revoked is True
        assert ledger.find_valid_token("token-a") is None


class TestConsume:
    def test_consume_is_compare_and_set(self, ledger, registered):
        _create(ledger, registered.account.id, "token-a")
        assert ledger.consume("token-a") is True
        assert ledger.consume("token-a") is False
        assert ledger.find_token("token-a").revoked is True

    def test_consume_unknown_token(self, ledger, registered):
        assert ledger.consume("nope") is False


class TestRevocation:
    def test_revoke_token_is_idempotent(self, ledger, registered):
        _create(ledger, registered.account.id, "token-a")
        assert ledger.revoke_token("token-a") is True
        assert ledger.revoke_token("token-a") is False
        assert ledger.revoke_token("never-issued") is False

    def test_revoke_all_only_touches_that_account(self, sessions, ledger, registered):
        bob = sessions.register("Bob Admin", "bob@example.com", "Secr3t!")
        _create(ledger, registered.account.id, "alice-2")

        assert ledger.count_active(registered.account.id) == 2
        assert ledger.revoke_all_for_account(registered.account.id) == 2
        assert ledger.count_active(registered.account.id) == 0
        assert ledger.count_active(bob.account.id) == 1


class TestDeleteExpired:
    def test_removes_only_expired_rows(self, ledger, registered):
        account_id = registered.account.id
        _create(ledger, account_id, "stale-1", expires_in=timedelta(hours=-2))
        _create(ledger, account_id, "stale-2", expires_in=timedelta(seconds=-1))
        _create(ledger, account_id, "fresh")

        assert ledger.delete_expired() == 2
        assert ledger.find_token("stale-1") is None
        assert ledger.find_token("stale-2") is None
        assert ledger.find_token("fresh") is not None
        assert ledger.find_valid_token(registered.refresh_token) is not None


class TestStorageSurface:
    def test_storage_exposes_only_what_the_stores_use(self):
        from models import storage

        for name in ("new", "save", "rollback", "get", "close", "get_session"):
            assert callable(getattr(storage, name))
        for name in ("delete", "count", "drop_all"):
            assert not hasattr(storage, name)

    def test_account_has_no_password_attribute(self, registered):
        assert not hasattr(registered.account, "password")
