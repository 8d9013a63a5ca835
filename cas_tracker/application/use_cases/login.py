from collections.abc import Callable

import structlog

from ...domain.entities import Account, normalize_email
from ...domain.errors import Deactivated, InvalidCredentials, NotApproved
from ..dto import LoginResult
from ..interfaces import IPasswordHasher, IUnitOfWork

logger = structlog.get_logger()


class Login:
    def __init__(self, uow: IUnitOfWork, hasher: IPasswordHasher,
                 issue_token: Callable[[Account], str]):
        self.uow = uow
        self.hasher = hasher
        self.issue_token = issue_token

    def execute(self, email: str, password: str) -> LoginResult:
        account = self.uow.accounts.get_by_email(normalize_email(email))
        if account is None or not self.hasher.verify(password, account.password_hash):
            logger.info("login_rejected", reason="invalid_credentials")
            raise InvalidCredentials()
        # approval and activation are checked only after the password matches
        if not account.approved:
            logger.info("login_rejected", reason="not_approved", account_id=account.id)
            raise NotApproved()
        if not account.active:
            logger.info("login_rejected", reason="deactivated", account_id=account.id)
            raise Deactivated()
        logger.info("login_succeeded", account_id=account.id, role=account.role.value)
        return LoginResult(access_token=self.issue_token(account), role=account.role)
