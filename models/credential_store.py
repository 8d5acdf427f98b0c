"""
CredentialStore: account records behind a small find/create/save surface.

Callers hash passwords before handing an Account to create() or save();
the store never touches password material.
"""
from __future__ import annotations

from typing import Tuple, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.account import Account
from utils.exceptions import DuplicateAccount, StoreUnavailable


def normalize_email(email: str | None) -> str | None:
    return email.strip().lower() if isinstance(email, str) else email


class CredentialStore:
    def __init__(self, storage):
        self.storage = storage

    def _query(self):
        return self.storage.get_session().query(Account)

    def find_by_email(self, email: str) -> Account | None:
        try:
            return self._query().filter(Account.email == normalize_email(email)).first()
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StoreUnavailable() from exc

    def find_by_id(self, account_id: str) -> Account | None:
        if not account_id:
            return None
        try:
            return self.storage.get(Account, str(account_id))
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StoreUnavailable() from exc

    def create(self, account: Account) -> Account:
        account.email = normalize_email(account.email)
        self.storage.new(account)
        try:
            self.storage.save()
        except IntegrityError as exc:
            # the unique index on email lost a race with another registration
            raise DuplicateAccount() from exc
        return account

    def save(self, account: Account) -> Account:
        self.storage.new(account)
        self.storage.save()
        return account

    def list(self, page: int = 1, limit: int = 20) -> Tuple[List[Account], int]:
        try:
            query = self._query()
            total = query.count()
            rows = (
                query.order_by(Account.created_at.desc(), Account.email.asc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StoreUnavailable() from exc
        return rows, total
