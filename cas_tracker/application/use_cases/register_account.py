import structlog

from ...domain.entities import Account, normalize_email
from ...domain.errors import Conflict, DomainRejected, ValidationError
from ...domain.password_policy import ensure_strong
from ..interfaces import IPasswordHasher, IUnitOfWork

logger = structlog.get_logger()


class RegisterAccount:
    def __init__(self, uow: IUnitOfWork, hasher: IPasswordHasher, allowed_domain: str):
        self.uow = uow
        self.hasher = hasher
        self.allowed_domain = allowed_domain.lower()

    def execute(self, email: str, password: str) -> Account:
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and password are required")
        if not email.endswith("@" + self.allowed_domain):
            raise DomainRejected(f"Invalid email domain. Must be @{self.allowed_domain}")
        ensure_strong(password)
        if self.uow.accounts.get_by_email(email):
            raise Conflict("User already exists")
        account = self.uow.accounts.create(email, self.hasher.hash(password))
        self.uow.commit()
        logger.info("account_registered", account_id=account.id)
        return account
