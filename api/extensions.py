from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Bound to the app in create_app(); limits and storage come from RATELIMIT_* config
limiter = Limiter(key_func=get_remote_address)


def auth_rate_limit() -> str:
    """Per-IP limit for the credential endpoints (login, register, refresh)."""
    return current_app.config["AUTH_RATE_LIMIT"]
