from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from ....application.dto import Identity, ResetChannel
from ....application.use_cases.login import Login
from ....application.use_cases.password_reset import RequestPasswordReset, ResetPassword, VerifyOtp
from ....application.use_cases.register_account import RegisterAccount
from ....config import settings
from ....domain.errors import DomainError, Unauthenticated
from ....infrastructure.mailer import SmtpMailer, get_mailer
from ....infrastructure.metrics import auth_events_total
from ....infrastructure.outbox import dispatch_pending
from ....infrastructure.rate_limit import AUTH_LIMIT, LOGIN_LIMIT, limiter
from ....infrastructure.repositories import SqlAlchemyUnitOfWork
from ....infrastructure.security import PasswordHasher, issue_token
from ..authz import get_identity
from ..deps import get_uow
from ..schemas import (
    AccountResp, ForgotPasswordReq, LoginReq, MessageResp, ResetPasswordReq, SignupReq,
    TokenResp, VerifyOtpReq,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/signup", response_model=MessageResp, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
def signup(
    request: Request,
    payload: SignupReq,
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    uc = RegisterAccount(uow, hasher=PasswordHasher(), allowed_domain=settings.ALLOWED_EMAIL_DOMAIN)
    uc.execute(payload.email, payload.password)
    auth_events_total.labels(event="signup").inc()
    return MessageResp(message="User registered successfully. Awaiting admin approval.")

@router.post("/login", response_model=TokenResp)
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    payload: LoginReq,
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    uc = Login(uow, hasher=PasswordHasher(), issue_token=issue_token)
    try:
        result = uc.execute(payload.email, payload.password)
    except DomainError:
        auth_events_total.labels(event="login_rejected").inc()
        raise
    auth_events_total.labels(event="login_success").inc()
    return TokenResp(access_token=result.access_token, token=result.access_token, role=result.role)

@router.get("/me", response_model=AccountResp)
def me(
    identity: Identity = Depends(get_identity),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    account = uow.accounts.get(identity.id)
    if account is None:
        raise Unauthenticated("User not found")
    return account

@router.post("/forgot-password", response_model=MessageResp)
@limiter.limit(AUTH_LIMIT)
def forgot_password(
    request: Request,
    payload: ForgotPasswordReq,
    background: BackgroundTasks,
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
    mailer: SmtpMailer = Depends(get_mailer),
):
    uc = RequestPasswordReset(
        uow,
        hasher=PasswordHasher(),
        admin_email=settings.ADMIN_EMAIL,
        recovery_email=settings.ADMIN_RECOVERY_EMAIL,
        ttl_minutes=settings.OTP_TTL_MINUTES,
    )
    channel = uc.execute(payload.email)
    auth_events_total.labels(event="reset_requested").inc()
    background.add_task(dispatch_pending, mailer)
    if channel is ResetChannel.ADMIN_PASSWORD:
        return MessageResp(message="A new password has been sent to the administrator recovery address")
    return MessageResp(message="OTP sent to your email")

@router.post("/verify-otp", response_model=MessageResp)
@limiter.limit(AUTH_LIMIT)
def verify_otp(
    request: Request,
    payload: VerifyOtpReq,
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    VerifyOtp(uow).execute(payload.email, payload.otp)
    return MessageResp(message="OTP verified")

@router.post("/reset-password", response_model=MessageResp)
@limiter.limit(AUTH_LIMIT)
def reset_password(
    request: Request,
    payload: ResetPasswordReq,
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    ResetPassword(uow, hasher=PasswordHasher()).execute(payload.email, payload.otp, payload.new_password)
    auth_events_total.labels(event="password_reset").inc()
    return MessageResp(message="Password reset successfully")
