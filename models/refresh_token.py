"""
RefreshToken model: one ledger row per issued refresh token.
Fields:
- token (String(64), unique) - SHA-256 digest of the issued token
- account_id (String(36)) - FK to accounts.id
- revoked (bool) - flips false -> true once, never back
- expires_at, created_at
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(64), nullable=False, unique=True, index=True)
    account_id = Column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    revoked = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def is_expired(self, now) -> bool:
        return now >= self.expires_at

    def is_valid(self, now) -> bool:
        return not self.revoked and not self.is_expired(now)

    def __repr__(self):
        return f"<RefreshToken account={self.account_id} revoked={self.revoked}>"
