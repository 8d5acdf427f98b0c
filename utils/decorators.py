from __future__ import annotations
from functools import wraps
from typing import Iterable

from flask import request, current_app

from utils.exceptions import AccountDeactivated, Forbidden, InvalidToken


class AccessGuard:
    """
    Per-request gate: verifies an access token and resolves the caller's
    account. Read-only; the resolved account is handed to the view instead
    of being parked on a request global.
    """

    def __init__(self, accounts, issuer):
        self.accounts = accounts
        self.issuer = issuer

    def authenticate(self, token: str | None):
        if not token:
            raise InvalidToken("Not authorized to access this route")
        # TokenExpired is left distinct so clients know to call /auth/refresh
        decoded = self.issuer.decode_access_token(token)

        account = self.accounts.find_by_id(decoded.get("id") or decoded.get("sub"))
        if account is None:
            raise InvalidToken()
        if not account.is_active:
            raise AccountDeactivated()
        return account

    @staticmethod
    def authorize(account, allowed_roles: Iterable[str]) -> None:
        if account.role not in set(allowed_roles):
            raise Forbidden(f"Role {account.role} is not authorized to access this route")


def extract_access_token(req=None) -> str | None:
    """Bearer token from the Authorization header (any scheme case), else the access cookie."""
    req = req or request
    auth = req.headers.get("Authorization", "")
    parts = auth.split(None, 1)
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1].strip():
        return parts[1].strip()
    return req.cookies.get(current_app.config.get("ACCESS_COOKIE_NAME", "accessToken")) or None


def get_access_guard() -> AccessGuard:
    return current_app.extensions["access_guard"]


def jwt_required():
    """Authenticate the request and call the view with current_account=<Account>."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            account = get_access_guard().authenticate(extract_access_token())
            kwargs["current_account"] = account
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access only if the authenticated account's role is in required_roles.
    """
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            AccessGuard.authorize(kwargs["current_account"], required_roles)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
