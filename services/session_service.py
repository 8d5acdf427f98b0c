"""
Session protocol: register, login, refresh-token rotation and logout.

Every refresh token belongs to a rotation chain. register/login create the
root, each successful refresh consumes the presented token and appends a
new one, logout revokes the current one. A revoked token presented again
(or a consume that loses the compare-and-set) is treated as theft: every
refresh token of the account is revoked and the caller must log in again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from models.account import Account, DEFAULT_ROLE
from models.base_model import utcnow
from utils.exceptions import (
    AccountDeactivated,
    AppError,
    DuplicateAccount,
    InvalidCredentials,
    InvalidInput,
    InvalidRefreshToken,
    ReuseDetected,
)
from utils.security import DUMMY_PASSWORD_HASH, hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTokens:
    account: Account
    access_token: str
    refresh_token: str


class SessionService:
    def __init__(self, accounts, ledger, issuer):
        self.accounts = accounts
        self.ledger = ledger
        self.issuer = issuer

    def _issue(self, account: Account) -> SessionTokens:
        refresh_token = self.issuer.mint_refresh_token(account)
        access_token = self.issuer.mint_access_token(account)
        return SessionTokens(account, access_token, refresh_token)

    def register(self, name: str, email: str, password: str, role: str | None = None) -> SessionTokens:
        if self.accounts.find_by_email(email) is not None:
            raise DuplicateAccount()

        account = Account(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role or DEFAULT_ROLE,
            is_active=True,
        )
        self.accounts.create(account)
        logger.info("Registered account %s (%s)", account.id, account.role)
        return self._issue(account)

    def login(self, email: str, password: str) -> SessionTokens:
        if not email or not password:
            raise InvalidInput("Email and password are required")

        account = self.accounts.find_by_email(email)
        # same error, and the same argon2 cost, for unknown email and wrong password
        password_ok = verify_password(password, account.password_hash if account else DUMMY_PASSWORD_HASH)
        if account is None or not password_ok:
            raise InvalidCredentials()
        if not account.is_active:
            raise AccountDeactivated()

        account.last_login = utcnow()
        self.accounts.save(account)
        logger.info("Login for account %s", account.id)
        return self._issue(account)

    def refresh(self, presented: str | None) -> SessionTokens:
        if not presented:
            raise InvalidRefreshToken("Refresh token is required")

        record = self.ledger.find_token(presented)
        if record is None:
            raise InvalidRefreshToken()

        account_id = record.account_id
        if record.revoked:
            self._revoke_after_reuse(account_id, "revoked token presented")
        if record.is_expired(utcnow()):
            raise InvalidRefreshToken()

        account = self.accounts.find_by_id(account_id)
        if account is None:
            raise InvalidRefreshToken()
        if not account.is_active:
            raise AccountDeactivated()

        # the consume and the successor insert commit together
        if not self.ledger.consume(presented, commit=False):
            self._revoke_after_reuse(account_id, "lost consume race")
        return self._issue(account)

    def _revoke_after_reuse(self, account_id: str, reason: str):
        logger.warning("Refresh token reuse for account %s (%s); revoking all sessions", account_id, reason)
        try:
            revoked = self.ledger.revoke_all_for_account(account_id)
        except AppError:
            logger.exception("Failed to revoke sessions for account %s after reuse", account_id)
        else:
            logger.warning("Revoked %d refresh token(s) for account %s", revoked, account_id)
        raise ReuseDetected()

    def logout(self, presented: str | None) -> bool:
        """Revoke the presented token only. Missing/unknown/revoked tokens are a no-op."""
        if not presented:
            return False
        revoked = self.ledger.revoke_token(presented)
        logger.info("Logout revoked=%s", revoked)
        return revoked
