"""
TokenLedger: the only writer of refresh_tokens rows.

Rows are keyed by the SHA-256 digest of the issued refresh token, so the
ledger treats the credential as an opaque value and never stores it raw.

Revocation goes through single UPDATE statements. consume() is the
compare-and-set used by rotation: it flips `revoked` only while the row is
still unrevoked and reports whether this caller won.
"""
from __future__ import annotations

import hashlib
from datetime import datetime

from sqlalchemy import update, delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from models.base_model import utcnow
from models.refresh_token import RefreshToken
from utils.exceptions import StoreUnavailable


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenLedger:
    def __init__(self, storage):
        self.storage = storage

    def _session(self):
        return self.storage.get_session()

    def _execute(self, statement, commit=True) -> int:
        """Run a DML statement and return its rowcount."""
        try:
            rowcount = self._session().execute(statement).rowcount
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StoreUnavailable() from exc
        if commit:
            self.storage.save()
        return rowcount

    def create_token(self, account_id: str, token: str, expires_at: datetime) -> RefreshToken:
        record = RefreshToken(
            token=token_digest(token),
            account_id=str(account_id),
            expires_at=expires_at,
            revoked=False,
        )
        self.storage.new(record)
        self.storage.save()
        return record

    def find_token(self, token: str) -> RefreshToken | None:
        """Ledger row for `token` whatever its state (revoked/expired included)."""
        try:
            return self._session().execute(
                select(RefreshToken)
                .where(RefreshToken.token == token_digest(token))
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StoreUnavailable() from exc

    def find_valid_token(self, token: str, now: datetime | None = None) -> RefreshToken | None:
        now = now or utcnow()
        record = self.find_token(token)
        if record is None or not record.is_valid(now):
            return None
        return record

    def consume(self, token: str, commit: bool = True) -> bool:
        """
        Revoke `token` iff it is still unrevoked. True when this call did
        the transition, False when someone else got there first.

        With commit=False the UPDATE stays in the open transaction so the
        caller can insert the successor token before committing both.
        """
        rowcount = self._execute(
            update(RefreshToken)
            .where(RefreshToken.token == token_digest(token), RefreshToken.revoked.is_(False))
            .values(revoked=True, updated_at=utcnow())
            .execution_options(synchronize_session=False),
            commit=commit,
        )
        return rowcount == 1

    def revoke_token(self, token: str) -> bool:
        """Idempotent: revoking an unknown or already revoked token is not an error."""
        rowcount = self._execute(
            update(RefreshToken)
            .where(RefreshToken.token == token_digest(token), RefreshToken.revoked.is_(False))
            .values(revoked=True, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return rowcount > 0

    def revoke_all_for_account(self, account_id: str) -> int:
        rowcount = self._execute(
            update(RefreshToken)
            .where(RefreshToken.account_id == str(account_id), RefreshToken.revoked.is_(False))
            .values(revoked=True, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return rowcount

    def delete_expired(self, now: datetime | None = None) -> int:
        now = now or utcnow()
        rowcount = self._execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return rowcount

    def count_active(self, account_id: str, now: datetime | None = None) -> int:
        now = now or utcnow()
        try:
            return self._session().execute(
                select(func.count(RefreshToken.id)).where(
                    RefreshToken.account_id == str(account_id),
                    RefreshToken.revoked.is_(False),
                    RefreshToken.expires_at > now,
                )
            ).scalar_one()
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StoreUnavailable() from exc
