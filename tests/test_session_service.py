"""Tests for register/login/refresh/logout, including concurrent rotation."""
import threading

import pytest

import services.session_service as session_module
from models import storage
from models.base_model import utcnow
from utils.exceptions import (
    AccountDeactivated,
    DuplicateAccount,
    InvalidCredentials,
    InvalidRefreshToken,
    ReuseDetected,
    StoreUnavailable,
)
from utils.security import DUMMY_PASSWORD_HASH, verify_password

from conftest import PASSWORD


class TestRegister:
    def test_register_issues_a_session(self, ledger, registered):
        account = registered.account
        assert account.email == "alice@example.com"
        assert account.role == "admin"
        assert account.is_active is True
        assert account.password_hash != PASSWORD
        assert registered.access_token
        assert ledger.find_valid_token(registered.refresh_token).account_id == account.id

    def test_register_with_role(self, sessions):
        tokens = sessions.register("Root", "root@example.com", PASSWORD, role="super-admin")
        assert tokens.account.role == "super-admin"

    def test_duplicate_email_is_rejected_case_insensitively(self, sessions, registered):
        with pytest.raises(DuplicateAccount):
            sessions.register("Other", "Alice@Example.COM", PASSWORD)


class TestLogin:
    def test_login_updates_last_login(self, sessions, accounts, registered):
        before = utcnow()
        tokens = sessions.login("alice@example.com", PASSWORD)
        assert tokens.account.last_login >= before
        assert accounts.find_by_id(registered.account.id).last_login is not None

    def test_unknown_email_and_wrong_password_look_the_same(self, sessions, registered):
        with pytest.raises(InvalidCredentials) as unknown:
            sessions.login("nobody@example.com", PASSWORD)
        with pytest.raises(InvalidCredentials) as wrong:
            sessions.login("alice@example.com", "wrong-password")
        assert unknown.value.message == wrong.value.message == "Invalid credentials"

    def test_deactivated_account_cannot_log_in(self, sessions, accounts, registered):
        account = registered.account
        account.is_active = False
        accounts.save(account)
        with pytest.raises(AccountDeactivated):
            sessions.login("alice@example.com", PASSWORD)

    def test_each_login_starts_its_own_chain(self, sessions, ledger, registered):
        sessions.login("alice@example.com", PASSWORD)
        assert ledger.count_active(registered.account.id) == 2


class TestRefresh:
    def test_refresh_rotates_both_tokens(self, sessions, ledger, registered):
        rotated = sessions.refresh(registered.refresh_token)

        assert rotated.access_token != registered.access_token
        assert rotated.refresh_token != registered.refresh_token
        assert ledger.find_token(registered.refresh_token).revoked is True
        assert ledger.find_valid_token(rotated.refresh_token) is not None
        assert ledger.count_active(registered.account.id) == 1

    def test_rotated_away_token_triggers_reuse_detection(self, sessions, ledger, registered):
        first = sessions.refresh(registered.refresh_token)
        second = sessions.refresh(first.refresh_token)

        with pytest.raises(ReuseDetected):
            sessions.refresh(registered.refresh_token)

        assert ledger.find_valid_token(second.refresh_token) is None
        assert ledger.count_active(registered.account.id) == 0

    def test_reuse_is_reported_even_after_expiry(self, sessions, registered, expire_refresh_token):
        sessions.refresh(registered.refresh_token)
        expire_refresh_token(registered.refresh_token)

        with pytest.raises(ReuseDetected):
            sessions.refresh(registered.refresh_token)

    def test_reuse_revokes_sibling_sessions(self, sessions, ledger, registered):
        sibling = sessions.login("alice@example.com", PASSWORD)
        sessions.refresh(registered.refresh_token)

        with pytest.raises(ReuseDetected):
            sessions.refresh(registered.refresh_token)
        assert ledger.find_valid_token(sibling.refresh_token) is None

    def test_expired_unrotated_token_is_invalid_without_escalation(
        self, sessions, ledger, registered, expire_refresh_token
    ):
        sibling = sessions.login("alice@example.com", PASSWORD)
        expire_refresh_token(registered.refresh_token)

        with pytest.raises(InvalidRefreshToken):
            sessions.refresh(registered.refresh_token)
        assert ledger.find_valid_token(sibling.refresh_token) is not None
        assert ledger.find_token(registered.refresh_token).revoked is False

    def test_unknown_and_missing_tokens_are_invalid(self, sessions, registered):
        with pytest.raises(InvalidRefreshToken):
            sessions.refresh("never-issued")
        with pytest.raises(InvalidRefreshToken):
            sessions.refresh(None)

    def test_deactivated_account_cannot_refresh(self, sessions, accounts, ledger, registered):
        account = registered.account
        account.is_active = False
        accounts.save(account)

        with pytest.raises(AccountDeactivated):
            sessions.refresh(registered.refresh_token)
        assert ledger.find_token(registered.refresh_token).revoked is False

    def test_failed_mass_revocation_does_not_mask_reuse(self, sessions, ledger, registered, monkeypatch):
        sessions.refresh(registered.refresh_token)

        def broken(account_id):
            raise StoreUnavailable()

        monkeypatch.setattr(ledger, "revoke_all_for_account", broken)
        with pytest.raises(ReuseDetected):
            sessions.refresh(registered.refresh_token)

    def test_failed_mint_leaves_presented_token_usable(self, sessions, ledger, registered, monkeypatch):
        def failing_commit():
            storage.rollback()
            raise StoreUnavailable()

        monkeypatch.setattr(storage, "save", failing_commit)
        with pytest.raises(StoreUnavailable):
            sessions.refresh(registered.refresh_token)
        monkeypatch.undo()

        assert ledger.find_valid_token(registered.refresh_token) is not None
        assert sessions.refresh(registered.refresh_token).refresh_token


class TestConcurrentRefresh:
    def test_same_token_twice_at_once(self, sessions, ledger, registered):
        barrier = threading.Barrier(2)
        outcomes = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            try:
                outcome = ("ok", sessions.refresh(registered.refresh_token))
            except ReuseDetected as exc:
                outcome = ("reuse", exc)
            except Exception as exc:  # surfaced through the assertion below
                outcome = ("error", exc)
            finally:
                storage.close()
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(kind for kind, _ in outcomes) == ["ok", "reuse"], outcomes
        assert ledger.count_active(registered.account.id) == 0


class TestLogout:
    def test_logout_revokes_only_the_presented_token(self, sessions, ledger, registered):
        sibling = sessions.login("alice@example.com", PASSWORD)

        assert sessions.logout(registered.refresh_token) is True
        assert ledger.find_token(registered.refresh_token).revoked is True
        assert ledger.find_valid_token(sibling.refresh_token) is not None

    def test_logout_is_idempotent(self, sessions, registered):
        sessions.logout(registered.refresh_token)
        assert sessions.logout(registered.refresh_token) is False
        assert sessions.logout("never-issued") is False
        assert sessions.logout(None) is False


class TestLoginTiming:
    def test_unknown_email_still_runs_a_password_check(self, sessions, registered, monkeypatch):
        checked = []
        real_verify = session_module.verify_password

        def recording_verify(password, password_hash):
            checked.append(password_hash)
            return real_verify(password, password_hash)

        monkeypatch.setattr(session_module, "verify_password", recording_verify)

        with pytest.raises(InvalidCredentials):
            sessions.login("nobody@example.com", PASSWORD)
        with pytest.raises(InvalidCredentials):
            sessions.login("alice@example.com", "wrong-password")

        assert checked == [DUMMY_PASSWORD_HASH, registered.account.password_hash]

    def test_dummy_hash_never_matches(self):
        assert DUMMY_PASSWORD_HASH.startswith("$argon2")
        assert not verify_password("", DUMMY_PASSWORD_HASH)
        assert not verify_password(PASSWORD, DUMMY_PASSWORD_HASH)
