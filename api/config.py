"""
Environment-aware configuration.
Values come from the process environment, with a .env file loaded if present.
Signing secrets have no built-in fallback outside TestingConfig: create_app()
refuses to start without them.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///admin-auth.db")
    DB_TIMEOUT_SECONDS = int(os.getenv("DB_TIMEOUT_SECONDS", "10"))

    # CORS: browsers must send cookies, so origins are an explicit whitelist
    FRONTEND_URLS = _env_list("FRONTEND_URLS", os.getenv("FRONTEND_URL", "http://localhost:3000"))

    JWT_SECRET = os.getenv("JWT_SECRET")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "admin-auth-api")
    ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.getenv("JWT_ACCESS_EXPIRES_MINUTES", "15")))
    REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv("JWT_REFRESH_EXPIRES_DAYS", "7")))

    REFRESH_COOKIE_NAME = "refreshToken"
    ACCESS_COOKIE_NAME = "accessToken"
    COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN") or None
    COOKIE_SECURE = False
    COOKIE_SAMESITE = "Lax"

    TOKEN_SWEEP_ENABLED = _env_bool("TOKEN_SWEEP_ENABLED", "true")
    TOKEN_SWEEP_INTERVAL_SECONDS = int(os.getenv("TOKEN_SWEEP_INTERVAL_SECONDS", "3600"))

    # Flask-Limiter: one shared budget per client IP across the app, tighter
    # per-route limits on the credential endpoints
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", "true")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_APPLICATION = os.getenv("RATELIMIT_APPLICATION", "100 per 15 minutes")
    RATELIMIT_HEADERS_ENABLED = True
    AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10 per minute")


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = False
    APP_ENV = "test"
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///admin-auth-test.db")
    JWT_SECRET = "test-access-secret"
    JWT_REFRESH_SECRET = "test-refresh-secret"
    TOKEN_SWEEP_ENABLED = False
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    APP_ENV = "production"
    # cross-site cookie for a separately hosted frontend
    COOKIE_SECURE = True
    COOKIE_SAMESITE = "None"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
