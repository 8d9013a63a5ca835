import structlog

from ...domain.entities import Account, Role, normalize_email
from ...domain.errors import Forbidden, NotFound, ValidationError
from ...domain.password_policy import generate
from ..authorization import require_role
from ..dto import Identity
from ..interfaces import IPasswordHasher, IUnitOfWork
from .. import messages

logger = structlog.get_logger()

ASSIGNABLE_ROLES = (Role.TEACHER, Role.STUDENT)


def _target(uow: IUnitOfWork, account_id: int) -> Account:
    account = uow.accounts.get(account_id)
    if account is None:
        raise NotFound("User not found")
    if account.role is Role.ADMIN:
        raise Forbidden("The administrator account cannot be modified")
    return account


class ListAccounts:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, pending_only: bool = False) -> list[Account]:
        require_role(actor, {Role.ADMIN})
        return self.uow.accounts.list(approved=False if pending_only else None)


class ApproveAccount:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, account_id: int, role: str) -> Account:
        require_role(actor, {Role.ADMIN})
        try:
            new_role = Role(role)
        except ValueError:
            new_role = None
        if new_role not in ASSIGNABLE_ROLES:
            raise ValidationError("Role must be 'teacher' or 'student'")
        target = _target(self.uow, account_id)
        account = self.uow.accounts.update(target.id, approved=True, role=new_role)
        subject, body = messages.account_approved(new_role.value)
        self.uow.outbox.enqueue(account.email, subject, body)
        self.uow.commit()
        logger.info("account_approved", account_id=account.id, role=new_role.value,
                    reapproval=target.approved)
        return account


class SetAccountActive:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, account_id: int, active: bool) -> Account:
        require_role(actor, {Role.ADMIN})
        target = _target(self.uow, account_id)
        account = self.uow.accounts.update(target.id, active=active)
        self.uow.commit()
        logger.info("account_reactivated" if active else "account_deactivated",
                    account_id=account.id)
        return account


class BootstrapAdmin:
    """Make sure the single administrator account exists and can sign in."""

    def __init__(self, uow: IUnitOfWork, hasher: IPasswordHasher):
        self.uow = uow
        self.hasher = hasher

    def execute(self, email: str, password: str | None = None) -> Account:
        email = normalize_email(email)
        existing = self.uow.accounts.get_by_email(email)
        if existing is not None:
            if existing.role is not Role.ADMIN or not existing.approved or not existing.active:
                existing = self.uow.accounts.update(
                    existing.id, role=Role.ADMIN, approved=True, active=True)
                self.uow.commit()
                logger.warning("admin_account_repaired", account_id=existing.id)
            return existing
        if password is None:
            password = generate()
            logger.warning("admin_password_generated",
                           hint="use forgot-password to receive it at the recovery address")
        account = self.uow.accounts.create(
            email, self.hasher.hash(password), role=Role.ADMIN, approved=True, active=True)
        self.uow.commit()
        logger.info("admin_account_created", account_id=account.id)
        return account
