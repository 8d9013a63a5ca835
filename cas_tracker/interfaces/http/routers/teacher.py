from fastapi import APIRouter, BackgroundTasks, Depends, Query

from ....application.authorization import require_role
from ....application.dto import Identity
from ....application.use_cases.submissions import ListTeacherProjects, ReviewProject
from ....domain.entities import ReviewState, Role
from ....infrastructure.mailer import SmtpMailer, get_mailer
from ....infrastructure.metrics import review_decisions_total
from ....infrastructure.outbox import dispatch_pending
from ....infrastructure.repositories import SqlAlchemyUnitOfWork
from ..authz import get_identity
from ..caching import cached_sections
from ..deps import get_uow
from ..schemas import ApproveProjectReq, DenyProjectReq, SectionResp, SubmissionResp

router = APIRouter(prefix="/api/teacher", tags=["teacher"])

@router.get("/sections", response_model=list[SectionResp])
def my_sections(identity: Identity = Depends(get_identity),
                uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    require_role(identity, {Role.TEACHER})
    return cached_sections(identity, uow)

@router.get("/projects", response_model=list[SubmissionResp])
def projects_for_review(state: ReviewState | None = Query(None),
                        identity: Identity = Depends(get_identity),
                        uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    return ListTeacherProjects(uow).execute(identity, state)

@router.post("/approve-project/{submission_id}", response_model=SubmissionResp)
def approve_project(submission_id: int, background: BackgroundTasks,
                    payload: ApproveProjectReq | None = None,
                    identity: Identity = Depends(get_identity),
                    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
                    mailer: SmtpMailer = Depends(get_mailer)):
    submission = ReviewProject(uow).execute(identity, submission_id, approve=True,
                                            comments=payload.teacher_comments if payload else None)
    review_decisions_total.labels(decision="approved").inc()
    background.add_task(dispatch_pending, mailer)
    return submission

@router.post("/deny-project/{submission_id}", response_model=SubmissionResp)
def deny_project(submission_id: int, payload: DenyProjectReq, background: BackgroundTasks,
                 identity: Identity = Depends(get_identity),
                 uow: SqlAlchemyUnitOfWork = Depends(get_uow),
                 mailer: SmtpMailer = Depends(get_mailer)):
    submission = ReviewProject(uow).execute(identity, submission_id, approve=False,
                                            comments=payload.comments)
    review_decisions_total.labels(decision="denied").inc()
    background.add_task(dispatch_pending, mailer)
    return submission
