import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from roomchat import create_app
from roomchat.core.auth.password import hash_password
from roomchat.core.auth.session_services import SessionAuthority
from roomchat.core.users.models import User
from roomchat.extensions import db

# Imported for their table definitions so create_all sees every model.
from roomchat.core.auth import models as auth_models  # noqa: F401
from roomchat.domains.rooms.models import room_models  # noqa: F401
from roomchat.platform.outbox import models as outbox_models  # noqa: F401

DEFAULT_PASSWORD = "secret123"


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")


@pytest.fixture()
def app():
    """
    Create a per-test app backed by a fresh in-memory sqlite database.

    The schema is built from the models, so each test starts empty and nothing
    leaks between tests.
    """
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    try:
        yield app
    finally:
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    """Factory for persisted users with a known password."""
    counter = {"n": 0}

    def _make(email: str | None = None, username: str | None = None, password: str = DEFAULT_PASSWORD, **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"user{n}@example.com",
            username=username or f"user{n}",
            password_hash=hash_password(password),
            **fields,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def login(app):
    """Log a user in through the session authority; returns the LoginResult."""

    def _login(user: User, password: str = DEFAULT_PASSWORD):
        return SessionAuthority().login(user.email, password)

    return _login


@pytest.fixture()
def auth_headers(login):
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {login(user).token}"}

    return _headers
