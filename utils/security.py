"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT
- TokenIssuer: mints access tokens and ledger-recorded refresh tokens
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

from utils.exceptions import ConfigurationError, TokenExpired, InvalidToken

ph = PasswordHasher()

# verified against when an email is unknown, so both login failures cost one argon2 check
DUMMY_PASSWORD_HASH = ph.hash(str(uuid.uuid4()))


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def decode_token(token: str, secret: str, algorithm: str, expected_type: str = "access") -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises TokenExpired on an expired signature
    and InvalidToken on anything else (bad signature, garbage, wrong type).
    """
    try:
        decoded = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken() from exc

    if decoded.get("type") != expected_type:
        raise InvalidToken()
    return decoded


class TokenIssuer:
    """
    Access tokens are stateless HS256 JWTs ({id, email, role}).
    Refresh tokens are JWTs signed with a separate secret; each one is
    written to the TokenLedger before it is handed back, so a token that
    could not be recorded is never returned.
    """

    def __init__(
        self,
        ledger,
        secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        issuer: str = "admin-auth-api",
    ):
        if not secret or not refresh_secret:
            raise ConfigurationError("JWT_SECRET and JWT_REFRESH_SECRET must be set")
        self.ledger = ledger
        self.secret = secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.issuer = issuer

    @classmethod
    def from_config(cls, config, ledger) -> "TokenIssuer":
        return cls(
            ledger,
            secret=config.get("JWT_SECRET"),
            refresh_secret=config.get("JWT_REFRESH_SECRET"),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            issuer=config.get("JWT_ISSUER", "admin-auth-api"),
        )

    @property
    def refresh_max_age(self) -> int:
        """Refresh TTL in seconds, for the cookie Max-Age."""
        return int(self.refresh_ttl.total_seconds())

    def mint_access_token(self, account, expires_in: timedelta | None = None) -> str:
        now = _now()
        exp = now + (expires_in if expires_in is not None else self.access_ttl)
        payload = {
            "iss": self.issuer,
            "sub": str(account.id),
            "id": str(account.id),
            "email": account.email,
            "role": account.role,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "type": "access",
            "jti": generate_jti(),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def mint_refresh_token(self, account) -> str:
        now = _now()
        exp = now + self.refresh_ttl
        payload = {
            "iss": self.issuer,
            "sub": str(account.id),
            "id": str(account.id),
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
            "type": "refresh",
            "jti": generate_jti(),
        }
        token = jwt.encode(payload, self.refresh_secret, algorithm=self.algorithm)
        # ledger expiry matches the exp claim; naive UTC like every stored timestamp
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)
        self.ledger.create_token(account.id, token, expires_at)
        return token

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        return decode_token(token, self.secret, self.algorithm, expected_type="access")
