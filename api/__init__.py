import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .extensions import limiter
from models import storage
from models.credential_store import CredentialStore
from models.token_ledger import TokenLedger
from services.account_service import AccountService
from services.session_service import SessionService
from utils.decorators import AccessGuard
from utils.security import TokenIssuer
from utils.token_sweeper import start_token_sweeper

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Admin Auth API",
        "version": "1.0.0",
        "description": "Admin registration, login and JWT access/refresh token rotation with reuse detection.",
    },
    "basePath": "/",  # blueprints are mounted under /api
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    Wires the auth core explicitly (store -> ledger -> issuer -> services)
    and keeps the instances in app.extensions. A missing signing secret
    raises ConfigurationError here, so the app never starts without one.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    # Credentialed CORS: the refresh cookie only travels to whitelisted origins
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config["FRONTEND_URLS"]}},
        supports_credentials=True,
        methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
        expose_headers=["Content-Disposition", "Content-Length"],
        max_age=86400,
    )

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    # Per-IP request limits (RATELIMIT_* and AUTH_RATE_LIMIT config)
    limiter.init_app(app)

    accounts = CredentialStore(storage)
    ledger = TokenLedger(storage)
    issuer = TokenIssuer.from_config(app.config, ledger)
    storage.reload(app.config["DATABASE_URL"], timeout=app.config["DB_TIMEOUT_SECONDS"])

    app.extensions["credential_store"] = accounts
    app.extensions["token_ledger"] = ledger
    app.extensions["token_issuer"] = issuer
    app.extensions["session_service"] = SessionService(accounts, ledger, issuer)
    app.extensions["account_service"] = AccountService(accounts, ledger)
    app.extensions["access_guard"] = AccessGuard(accounts, issuer)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .admins import bp as admins_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(admins_bp, url_prefix="/api")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Admin Auth API",
            "docs": "/apidocs/",
            "health": "/api/health",
        }, 200

    if app.config["TOKEN_SWEEP_ENABLED"]:
        start_token_sweeper(app, app.config["TOKEN_SWEEP_INTERVAL_SECONDS"])

    logger.info("App created (env=%s)", app.config["APP_ENV"])
    return app
