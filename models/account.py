from sqlalchemy import Column, String, Boolean, DateTime, Index

from models.base_model import Base, BaseModel

ROLES = ("admin", "super-admin")
DEFAULT_ROLE = "admin"


class Account(BaseModel, Base):
    __tablename__ = "accounts"
    __table_args__ = (Index("ix_accounts_role_active", "role", "is_active"),)

    name = Column(String(50), nullable=False)
    # stored lower-case, so the unique index makes email case-insensitive
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=DEFAULT_ROLE)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Account {self.email} role={self.role}>"
