from datetime import date

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ....application.dto import EvidenceUpload, Identity
from ....application.use_cases.submissions import (
    ListStudentProjects, ResubmitProject, SubmitProject,
)
from ....config import settings
from ....domain.submissions import SubmissionInput
from ....infrastructure.repositories import SqlAlchemyUnitOfWork
from ....infrastructure.storage import EvidenceStorage, get_storage
from ..authz import get_identity
from ..deps import get_uow
from ..schemas import SubmissionResp

router = APIRouter(prefix="/api/student", tags=["student"])

def submission_form(
    title: str = Form(...),
    description: str = Form(...),
    category: list[str] = Form(...),
    location: str = Form(...),
    start_date: date = Form(..., alias="startDate"),
    end_date: date = Form(..., alias="endDate"),
    learning_outcomes: list[str] = Form(..., alias="learningOutcomes"),
    un_goals: list[str] = Form(..., alias="unGoals"),
    investigation: str = Form(...),
    learner_profile: str = Form(..., alias="learnerProfile"),
    supervisor_name: str = Form(..., alias="supervisorName"),
    progress_status: str = Form(..., alias="status"),
) -> SubmissionInput:
    """The project form as the web client posts it (multipart, repeated keys for lists)."""
    return SubmissionInput(
        title=title,
        description=description,
        categories=tuple(category),
        location=location,
        start_date=start_date,
        end_date=end_date,
        learning_outcomes=tuple(learning_outcomes),
        un_goals=tuple(un_goals),
        investigation=investigation,
        learner_profile=learner_profile,
        supervisor_name=supervisor_name,
        progress_status=progress_status,
    )

def evidence_uploads(evidence: list[UploadFile] | None = File(None)) -> list[EvidenceUpload]:
    return [
        EvidenceUpload(filename=f.filename or "", content_type=f.content_type or "", stream=f.file)
        for f in evidence or []
        if f.filename
    ]

@router.get("/projects", response_model=list[SubmissionResp])
def my_projects(identity: Identity = Depends(get_identity),
                uow: SqlAlchemyUnitOfWork = Depends(get_uow)):
    return ListStudentProjects(uow).execute(identity)

@router.post("/submit-project", response_model=SubmissionResp, status_code=status.HTTP_201_CREATED)
def submit_project(data: SubmissionInput = Depends(submission_form),
                   uploads: list[EvidenceUpload] = Depends(evidence_uploads),
                   identity: Identity = Depends(get_identity),
                   uow: SqlAlchemyUnitOfWork = Depends(get_uow),
                   storage: EvidenceStorage = Depends(get_storage)):
    uc = SubmitProject(uow, storage, max_bytes=settings.MAX_EVIDENCE_BYTES)
    return uc.execute(identity, data, uploads)

@router.put("/projects/{submission_id}", response_model=SubmissionResp)
def resubmit_project(submission_id: int,
                     data: SubmissionInput = Depends(submission_form),
                     uploads: list[EvidenceUpload] = Depends(evidence_uploads),
                     identity: Identity = Depends(get_identity),
                     uow: SqlAlchemyUnitOfWork = Depends(get_uow),
                     storage: EvidenceStorage = Depends(get_storage)):
    uc = ResubmitProject(uow, storage, max_bytes=settings.MAX_EVIDENCE_BYTES)
    return uc.execute(identity, submission_id, data, uploads)
