import os
import sys
from datetime import timedelta
from pathlib import Path

os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402
from sqlalchemy import update  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.base_model import utcnow  # noqa: E402
from models.refresh_token import RefreshToken  # noqa: E402
from models.token_ledger import token_digest  # noqa: E402

PASSWORD = "Secr3t!"


@pytest.fixture
def app(tmp_path):
    """App on a throwaway SQLite file so worker threads get their own connections."""
    app = create_app("testing", {"DATABASE_URL": f"sqlite:///{tmp_path / 'auth.db'}"})
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sessions(app):
    return app.extensions["session_service"]


@pytest.fixture
def ledger(app):
    return app.extensions["token_ledger"]


@pytest.fixture
def issuer(app):
    return app.extensions["token_issuer"]


@pytest.fixture
def accounts(app):
    return app.extensions["credential_store"]


@pytest.fixture
def account_service(app):
    return app.extensions["account_service"]


@pytest.fixture
def guard(app):
    return app.extensions["access_guard"]


@pytest.fixture
def registered(sessions):
    """A registered admin and the session tokens issued at registration."""
    return sessions.register("Alice Admin", "alice@example.com", PASSWORD)


@pytest.fixture
def expire_refresh_token(app):
    """Push a ledger row's expiry into the past."""
    def _expire(token, by=timedelta(minutes=1)):
        storage.get_session().execute(
            update(RefreshToken)
            .where(RefreshToken.token == token_digest(token))
            .values(expires_at=utcnow() - by)
        )
        storage.save()

    return _expire


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
