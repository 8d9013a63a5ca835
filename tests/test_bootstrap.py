import pytest

from cas_tracker.application.use_cases import manage_accounts
from cas_tracker.application.use_cases.manage_accounts import BootstrapAdmin
from cas_tracker.domain.entities import Role
from cas_tracker.domain.password_policy import validate
from cas_tracker.infrastructure.models import AccountORM
from cas_tracker.infrastructure.repositories import SqlAlchemyUnitOfWork
from cas_tracker.infrastructure.security import PasswordHasher

from conftest import ADMIN_EMAIL


@pytest.fixture
def bootstrap(session_factory):
    """Run the bootstrap in a fresh session, as application startup does."""
    def _run(email=ADMIN_EMAIL, password=None):
        session = session_factory()
        try:
            return BootstrapAdmin(SqlAlchemyUnitOfWork(session), PasswordHasher()).execute(email, password)
        finally:
            session.close()

    return _run


def admin_rows(session_factory):
    session = session_factory()
    try:
        return session.query(AccountORM).filter(AccountORM.role == Role.ADMIN.value).all()
    finally:
        session.close()


def test_creates_admin_with_configured_password(bootstrap, session_factory):
    account = bootstrap(password="Adm1n!Pass")
    assert account.role is Role.ADMIN
    assert account.approved and account.active
    [row] = admin_rows(session_factory)
    assert row.email == ADMIN_EMAIL
    assert PasswordHasher().verify("Adm1n!Pass", row.password_hash)


def test_creates_admin_with_generated_password(bootstrap, session_factory, monkeypatch):
    generated = []

    def fake_generate():
        password = "Gen3rated!pw"
        generated.append(password)
        return password

    monkeypatch.setattr(manage_accounts, "generate", fake_generate)
    bootstrap()
    [row] = admin_rows(session_factory)
    assert generated == ["Gen3rated!pw"]
    assert PasswordHasher().verify("Gen3rated!pw", row.password_hash)


def test_generated_password_is_strong(bootstrap, session_factory, monkeypatch):
    real_generate = manage_accounts.generate
    seen = []

    def recording_generate():
        seen.append(real_generate())
        return seen[-1]

    monkeypatch.setattr(manage_accounts, "generate", recording_generate)
    bootstrap()
    [password] = seen
    assert validate(password) == []
    [row] = admin_rows(session_factory)
    assert PasswordHasher().verify(password, row.password_hash)


def test_bootstrap_is_idempotent(bootstrap, session_factory):
    first = bootstrap(password="Adm1n!Pass")
    second = bootstrap(password="Other!Pass9")
    assert second.id == first.id
    [row] = admin_rows(session_factory)
    # an existing admin keeps its password
    assert PasswordHasher().verify("Adm1n!Pass", row.password_hash)


def test_email_is_normalized(bootstrap, session_factory):
    bootstrap(email="  Admin@FountainheadSchools.org ")
    [row] = admin_rows(session_factory)
    assert row.email == ADMIN_EMAIL


@pytest.mark.parametrize("role, approved, active", [
    (Role.STUDENT, True, True),
    (Role.ADMIN, False, True),
    (Role.ADMIN, True, False),
    (Role.TEACHER, False, False),
])
def test_repairs_existing_account(bootstrap, session_factory, make_account, role, approved, active):
    account_id = make_account(ADMIN_EMAIL, role=role, approved=approved, active=active)
    account = bootstrap()
    assert account.id == account_id
    assert (account.role, account.approved, account.active) == (Role.ADMIN, True, True)
    [row] = admin_rows(session_factory)
    assert (row.id, row.approved, row.active) == (account_id, True, True)


def test_startup_seeds_exactly_one_admin(client, session_factory):
    with client:
        pass
    with client:
        pass
    [row] = admin_rows(session_factory)
    assert row.email == ADMIN_EMAIL
    assert row.approved and row.active
