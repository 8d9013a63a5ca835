import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["NOTIFICATION_POLL_SECONDS"] = "0"
os.environ["NOTIFICATION_MAX_ATTEMPTS"] = "3"
os.environ["ADMIN_EMAIL"] = "admin@fountainheadschools.org"
os.environ["ADMIN_RECOVERY_EMAIL"] = "recovery@example.com"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cas_tracker.domain.entities import Role
from cas_tracker.infrastructure import db as database
from cas_tracker.infrastructure.db import get_db
from cas_tracker.infrastructure.mailer import MailDeliveryError, get_mailer
from cas_tracker.infrastructure.models import AccountORM, Base
from cas_tracker.infrastructure.rate_limit import limiter
from cas_tracker.infrastructure.security import PasswordHasher, create_access_token
from cas_tracker.infrastructure.storage import EvidenceStorage, get_storage
from cas_tracker.main import app

PASSWORD = "Str0ng!Pass"
ADMIN_EMAIL = "admin@fountainheadschools.org"

limiter.enabled = False


class FakeMailer:
    """Records outgoing mail; set ``fail`` to simulate an SMTP outage."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, to, subject, body):
        if self.fail:
            raise MailDeliveryError("connection refused")
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
def session_factory(monkeypatch):
    """In-memory database shared across the test client threads."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False},
                           poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    # background delivery opens its own sessions
    monkeypatch.setattr(database, "SessionLocal", factory)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def client(session_factory, mailer, upload_dir):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: EvidenceStorage(upload_dir)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(session_factory):
    """Create an account row directly and return its id."""
    hasher = PasswordHasher()

    def _make(email, role=Role.STUDENT, approved=True, active=True, password=PASSWORD):
        session = session_factory()
        try:
            row = AccountORM(email=email, password_hash=hasher.hash(password), role=role.value,
                             approved=approved, active=active)
            session.add(row)
            session.commit()
            return row.id
        finally:
            session.close()

    return _make


@pytest.fixture
def admin_id(make_account):
    return make_account(ADMIN_EMAIL, role=Role.ADMIN)


def auth_header(account_id, role, email=None):
    token = create_access_token(sub=str(account_id), role=role.value, email=email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_id):
    return auth_header(admin_id, Role.ADMIN, ADMIN_EMAIL)
