import structlog

from ...domain.entities import EvidenceFile, ReviewState, Role, Submission
from ...domain.errors import Forbidden, NotFound, ValidationError
from ...domain.otp import utcnow
from ...domain.submissions import (
    SubmissionInput, ensure_editable, ensure_reviewable, validate_evidence_types, validate_input,
)
from ..authorization import require_role
from ..dto import EvidenceUpload, Identity
from ..interfaces import IEvidenceStorage, IUnitOfWork
from .. import messages

logger = structlog.get_logger()


def _discard(storage: IEvidenceStorage, files: list[EvidenceFile]) -> None:
    for f in files:
        try:
            storage.delete(f.filename)
        except OSError:
            logger.warning("evidence_cleanup_failed", filename=f.filename, exc_info=True)


def store_evidence(storage: IEvidenceStorage, uploads: list[EvidenceUpload],
                   max_bytes: int) -> list[EvidenceFile]:
    """Write every upload, or none: files already written are removed on failure."""
    stored: list[EvidenceFile] = []
    try:
        for upload in uploads:
            stored.append(storage.save(upload, max_bytes))
    except Exception:
        _discard(storage, stored)
        raise
    return stored


def _owned(uow: IUnitOfWork, student: Identity, submission_id: int) -> Submission:
    submission = uow.submissions.get(submission_id)
    if submission is None:
        raise NotFound("Project not found")
    if submission.student_id != student.id:
        raise Forbidden("You can only edit your own projects")
    return submission


class SubmitProject:
    def __init__(self, uow: IUnitOfWork, storage: IEvidenceStorage, max_bytes: int):
        self.uow = uow
        self.storage = storage
        self.max_bytes = max_bytes

    def execute(self, student: Identity, data: SubmissionInput,
                uploads: list[EvidenceUpload]) -> Submission:
        require_role(student, {Role.STUDENT})
        validate_input(data)
        validate_evidence_types([u.content_type for u in uploads])
        section = self.uow.sections.section_of_student(student.id)
        if section is None:
            raise ValidationError("You are not assigned to a section yet. Please contact admin.")

        stored = store_evidence(self.storage, uploads, self.max_bytes)
        try:
            submission = self.uow.submissions.create(student.id, section.id, data, stored)
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            _discard(self.storage, stored)
            raise
        logger.info("project_submitted", submission_id=submission.id, student_id=student.id,
                    section_id=section.id, evidence=len(stored))
        return submission


class ResubmitProject:
    """Replace a denied project with a new version and send it back for review."""

    def __init__(self, uow: IUnitOfWork, storage: IEvidenceStorage, max_bytes: int):
        self.uow = uow
        self.storage = storage
        self.max_bytes = max_bytes

    def execute(self, student: Identity, submission_id: int, data: SubmissionInput,
                uploads: list[EvidenceUpload]) -> Submission:
        require_role(student, {Role.STUDENT})
        current = _owned(self.uow, student, submission_id)
        ensure_editable(current.review_state)
        validate_input(data)
        validate_evidence_types([u.content_type for u in uploads])

        stored = store_evidence(self.storage, uploads, self.max_bytes)
        try:
            submission = self.uow.submissions.resubmit(submission_id, data, stored)
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            _discard(self.storage, stored)
            raise
        _discard(self.storage, list(current.evidence))
        logger.info("project_resubmitted", submission_id=submission_id,
                    revision=submission.revision)
        return submission


class ReviewProject:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, teacher: Identity, submission_id: int, approve: bool,
                comments: str | None = None) -> Submission:
        require_role(teacher, {Role.TEACHER})
        submission = self.uow.submissions.get(submission_id)
        if submission is None:
            raise NotFound("Project not found")
        section = self.uow.sections.get(submission.section_id)
        if section is None or section.teacher_id != teacher.id:
            raise Forbidden("You can only review projects from your own sections")
        ensure_reviewable(submission.review_state)
        comments = comments.strip() if comments else None
        if not approve and not comments:
            raise ValidationError("Comments are required when denying a project")

        state = ReviewState.APPROVED if approve else ReviewState.DENIED
        reviewed = self.uow.submissions.record_review(
            submission_id, state, comments, teacher.id, utcnow())
        if reviewed.student_email:
            subject, body = messages.project_reviewed(reviewed.title, approve, comments)
            self.uow.outbox.enqueue(reviewed.student_email, subject, body)
        self.uow.commit()
        logger.info("project_reviewed", submission_id=submission_id, state=state.value,
                    teacher_id=teacher.id)
        return reviewed


class ListStudentProjects:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, student: Identity) -> list[Submission]:
        require_role(student, {Role.STUDENT})
        return self.uow.submissions.list_for_student(student.id)


class ListTeacherProjects:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, teacher: Identity, state: ReviewState | None = None) -> list[Submission]:
        require_role(teacher, {Role.TEACHER})
        return self.uow.submissions.list_for_teacher(teacher.id, state)


class GetEvidence:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, identity: Identity, evidence_id: int) -> EvidenceFile:
        found = self.uow.submissions.get_evidence(evidence_id)
        if found is None:
            raise NotFound("File not found")
        evidence, submission = found
        if identity.role is Role.ADMIN or submission.student_id == identity.id:
            return evidence
        if identity.role is Role.TEACHER:
            section = self.uow.sections.get(submission.section_id)
            if section is not None and section.teacher_id == identity.id:
                return evidence
        raise Forbidden("Access denied")
