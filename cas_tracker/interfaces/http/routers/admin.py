from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from ....application.dto import Identity
from ....application.use_cases.manage_accounts import ApproveAccount, ListAccounts, SetAccountActive
from ....application.use_cases.notifications import ListNotifications, RetryNotification
from ....application.use_cases.sections import (
    AddStudent, AssignTeacher, CreateSection, RemoveStudent,
)
from ....application.authorization import require_role
from ....domain.entities import Role
from ....infrastructure.mailer import SmtpMailer, get_mailer
from ....infrastructure.outbox import dispatch_pending
from ....infrastructure.repositories import SqlAlchemyUnitOfWork
from ..authz import get_identity
from ..caching import cached_sections, invalidate_sections
from ..deps import get_uow
from ..schemas import (
    AccountResp, ApproveReq, CreateSectionReq, NotificationResp, SectionResp, SectionStudentReq,
    SectionTeacherReq,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])

# --- Accounts:

@router.get("/users", response_model=list[AccountResp])
def pending_accounts(identity: Identity = Depends(get_identity),
                     uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    return ListAccounts(uow).execute(identity, pending_only=True)

@router.get("/all-users", response_model=list[AccountResp])
def all_accounts(identity: Identity = Depends(get_identity),
                 uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    return ListAccounts(uow).execute(identity)

@router.post("/approve/{account_id}", response_model=AccountResp)
def approve_account(account_id: int, background: BackgroundTasks,
                    payload: ApproveReq | None = None,
                    identity: Identity = Depends(get_identity),
                    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
                    mailer: SmtpMailer = Depends(get_mailer)):
    role = payload.role if payload else "student"
    account = ApproveAccount(uow).execute(identity, account_id, role)
    # role changes affect section eligibility
    invalidate_sections()
    background.add_task(dispatch_pending, mailer)
    return account

@router.post("/deactivate/{account_id}", response_model=AccountResp)
def deactivate_account(account_id: int, identity: Identity = Depends(get_identity),
                       uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    return SetAccountActive(uow).execute(identity, account_id, active=False)

@router.post("/reactivate/{account_id}", response_model=AccountResp)
def reactivate_account(account_id: int, identity: Identity = Depends(get_identity),
                       uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    return SetAccountActive(uow).execute(identity, account_id, active=True)

# --- Sections:

@router.get("/sections", response_model=list[SectionResp])
def list_sections(identity: Identity = Depends(get_identity),
                  uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    require_role(identity, {Role.ADMIN})
    return cached_sections(identity, uow)

@router.post("/create-section", response_model=SectionResp, status_code=status.HTTP_201_CREATED)
def create_section(payload: CreateSectionReq, identity: Identity = Depends(get_identity),
                   uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    section = CreateSection(uow).execute(identity, payload.name, payload.teacher_id)
    invalidate_sections()
    return section

@router.post("/assign-teacher-to-section", response_model=SectionResp)
def assign_teacher(payload: SectionTeacherReq, identity: Identity = Depends(get_identity),
                   uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    section = AssignTeacher(uow).execute(identity, payload.section_id, payload.teacher_id)
    invalidate_sections()
    return section

@router.post("/add-student-to-section", response_model=SectionResp)
def add_student(payload: SectionStudentReq, identity: Identity = Depends(get_identity),
                uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    section = AddStudent(uow).execute(identity, payload.section_id, payload.student_id)
    invalidate_sections()
    return section

@router.post("/remove-student-from-section", response_model=SectionResp)
def remove_student(payload: SectionStudentReq, identity: Identity = Depends(get_identity),
                   uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    section = RemoveStudent(uow).execute(identity, payload.section_id, payload.student_id)
    invalidate_sections()
    return section

# --- Notification outbox:

@router.get("/notifications", response_model=list[NotificationResp])
def list_notifications(status: str | None = Query(None),
                       identity: Identity = Depends(get_identity),
                       uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    return ListNotifications(uow).execute(identity, status)

@router.post("/notifications/{notification_id}/retry", response_model=NotificationResp)
def retry_notification(notification_id: int, background: BackgroundTasks,
                       identity: Identity = Depends(get_identity),
                       uow: SqlAlchemyUnitOfWork = Depends(get_uow),
                       mailer: SmtpMailer = Depends(get_mailer)):
    note = RetryNotification(uow).execute(identity, notification_id)
    background.add_task(dispatch_pending, mailer)
    return note
