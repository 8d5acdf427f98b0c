"""
Account management on top of CredentialStore and TokenLedger: profile and
password changes for the caller, activation and role changes for
super-admins. Anything that invalidates a credential also revokes the
account's refresh tokens.
"""
from __future__ import annotations

import logging

from models.account import Account, ROLES
from utils.exceptions import Forbidden, InvalidCredentials, InvalidInput, NotFound
from utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, accounts, ledger):
        self.accounts = accounts
        self.ledger = ledger

    def get(self, account_id: str) -> Account:
        account = self.accounts.find_by_id(account_id)
        if account is None:
            raise NotFound("No admin found with that ID")
        return account

    def list(self, page: int, limit: int):
        return self.accounts.list(page=page, limit=limit)

    def update_profile(self, account: Account, name: str | None = None) -> Account:
        if name is not None:
            account.name = name
        return self.accounts.save(account)

    def change_password(self, account: Account, current_password: str, new_password: str) -> int:
        """Returns the number of refresh tokens revoked."""
        if not verify_password(current_password, account.password_hash):
            raise InvalidCredentials("Current password is incorrect")
        account.password_hash = hash_password(new_password)
        self.accounts.save(account)
        revoked = self.ledger.revoke_all_for_account(account.id)
        logger.info("Password changed for account %s; revoked %d session(s)", account.id, revoked)
        return revoked

    def set_active(self, actor: Account, account_id: str, active: bool) -> Account:
        account = self.get(account_id)
        if account.id == actor.id and not active:
            raise Forbidden("You cannot deactivate your own account")
        account.is_active = active
        self.accounts.save(account)
        if not active:
            revoked = self.ledger.revoke_all_for_account(account.id)
            logger.info("Deactivated account %s; revoked %d session(s)", account.id, revoked)
        return account

    def set_role(self, account_id: str, role: str) -> Account:
        if role not in ROLES:
            raise InvalidInput(f"Role must be one of {', '.join(ROLES)}")
        account = self.get(account_id)
        account.role = role
        return self.accounts.save(account)
