"""Pytest configuration and fixtures for the TicketFlow backend tests."""

import os
import shutil
import tempfile
from pathlib import Path

# Settings are read once at import time, so the environment must be in place
# before any application module is imported.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="ticketflow-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{(_TMP_DIR / 'test.db').as_posix()}"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from auth.directory import provision_user  # noqa: E402
from core.permissions import Role  # noqa: E402
from core.rate_limit import login_rate_limiter  # noqa: E402
from core.security import AUTH_COOKIE, create_access_token  # noqa: E402
from database import Base, SessionLocal, engine  # noqa: E402
import models.audit_log  # noqa: F401, E402
import models.ticket  # noqa: F401, E402
import models.user  # noqa: F401, E402

DEFAULT_PASSWORD = "TestPassword123!"


@pytest.fixture(scope="session", autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)
    engine.dispose()
    shutil.rmtree(_TMP_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def _clean_state():
    """Empty every table and the login counters between tests."""
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    login_rate_limiter.reset()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from main import app
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Insert a user directly: make_user(Role.AGENT, email=..., password=...)."""
    counter = {"n": 0}

    def _make(role=Role.DEMANDEUR, email=None, password=DEFAULT_PASSWORD, name=None):
        counter["n"] += 1
        email = email or f"{role.value}{counter['n']}@ticketflow.com"
        return provision_user(db, name or f"{role.value.title()} User", email, password, role)

    return _make


@pytest.fixture
def login_as(client, make_user):
    """Create a user of *role* and put a valid session cookie on the client."""

    def _login(role=Role.DEMANDEUR, **kwargs):
        user = make_user(role, **kwargs)
        token = create_access_token(user.id, user.email, user.role.value)
        client.cookies.set(AUTH_COOKIE, token)
        return user

    return _login
