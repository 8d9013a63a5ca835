from collections.abc import Callable
from datetime import datetime

import structlog

from ...domain import otp
from ...domain.entities import Account, normalize_email
from ...domain.errors import InvalidOtp, NotFound, ValidationError
from ...domain.password_policy import ensure_strong, generate
from ..dto import ResetChannel
from ..interfaces import IPasswordHasher, IUnitOfWork
from .. import messages

logger = structlog.get_logger()


class RequestPasswordReset:
    """Issue a reset code, or a fresh password when the administrator asks.

    The administrator never goes through the code flow: a new strong password
    is installed immediately and mailed to the recovery address.
    """

    def __init__(self, uow: IUnitOfWork, hasher: IPasswordHasher, admin_email: str,
                 recovery_email: str, ttl_minutes: int,
                 clock: Callable[[], datetime] = otp.utcnow):
        self.uow = uow
        self.hasher = hasher
        self.admin_email = normalize_email(admin_email)
        self.recovery_email = recovery_email
        self.ttl_minutes = ttl_minutes
        self.clock = clock

    def execute(self, email: str) -> ResetChannel:
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")
        account = self.uow.accounts.get_by_email(email)
        if account is None:
            raise NotFound("User not found")
        if email == self.admin_email:
            return self._reset_admin(account)

        code = otp.generate_code()
        expires_at = otp.expiry(self.clock(), self.ttl_minutes)
        self.uow.resets.put(account.id, otp.hash_code(code), expires_at)
        subject, body = messages.reset_code(code, self.ttl_minutes)
        self.uow.outbox.enqueue(account.email, subject, body)
        self.uow.commit()
        logger.info("reset_code_issued", account_id=account.id, expires_at=expires_at.isoformat())
        return ResetChannel.OTP

    def _reset_admin(self, account: Account) -> ResetChannel:
        password = generate()
        self.uow.accounts.update(account.id, password_hash=self.hasher.hash(password))
        self.uow.resets.delete(account.id)
        subject, body = messages.admin_password(account.email, password)
        self.uow.outbox.enqueue(self.recovery_email, subject, body)
        self.uow.commit()
        logger.warning("admin_password_reissued", account_id=account.id)
        return ResetChannel.ADMIN_PASSWORD


def _live_reset(uow: IUnitOfWork, email: str, code: str, now: datetime) -> Account:
    account = uow.accounts.get_by_email(normalize_email(email))
    if account is None:
        raise InvalidOtp()
    reset = uow.resets.get(account.id)
    if reset is None or not otp.is_live(reset.expires_at, now):
        raise InvalidOtp()
    if not otp.code_matches(code.strip(), reset.code_hash):
        raise InvalidOtp()
    return account


class VerifyOtp:
    def __init__(self, uow: IUnitOfWork, clock: Callable[[], datetime] = otp.utcnow):
        self.uow = uow
        self.clock = clock

    def execute(self, email: str, code: str) -> None:
        if not email or not code:
            raise ValidationError("Email and OTP are required")
        _live_reset(self.uow, email, code, self.clock())


class ResetPassword:
    def __init__(self, uow: IUnitOfWork, hasher: IPasswordHasher,
                 clock: Callable[[], datetime] = otp.utcnow):
        self.uow = uow
        self.hasher = hasher
        self.clock = clock

    def execute(self, email: str, code: str, new_password: str) -> None:
        if not email or not code or not new_password:
            raise ValidationError("Email, OTP, and new password are required")
        ensure_strong(new_password)
        account = _live_reset(self.uow, email, code, self.clock())
        self.uow.accounts.update(account.id, password_hash=self.hasher.hash(new_password))
        self.uow.resets.delete(account.id)
        self.uow.commit()
        logger.info("password_reset", account_id=account.id)
