from __future__ import annotations

from datetime import datetime

from ..domain.entities import (
    Account, EvidenceFile, Notification, PasswordReset, ReviewState, Role, Section, Submission,
)
from ..domain.submissions import SubmissionInput
from .dto import EvidenceUpload


class IAccountRepository:
    def get(self, account_id: int) -> Account | None: ...
    def get_by_email(self, email: str) -> Account | None: ...
    def create(self, email: str, password_hash: str, role: Role = Role.STUDENT,
               approved: bool = False, active: bool = True) -> Account: ...
    def update(self, account_id: int, **fields) -> Account: ...
    def list(self, approved: bool | None = None) -> list[Account]: ...


class IPasswordResetRepository:
    def get(self, account_id: int) -> PasswordReset | None: ...
    def put(self, account_id: int, code_hash: str, expires_at: datetime) -> PasswordReset: ...
    def delete(self, account_id: int) -> None: ...


class ISectionRepository:
    def get(self, section_id: int) -> Section | None: ...
    def get_by_name(self, name: str) -> Section | None: ...
    def create(self, name: str, teacher_id: int) -> Section: ...
    def set_teacher(self, section_id: int, teacher_id: int) -> Section: ...
    def add_student(self, section_id: int, student_id: int) -> Section: ...
    def remove_student(self, section_id: int, student_id: int) -> bool: ...
    def section_of_student(self, student_id: int) -> Section | None: ...
    def list(self, teacher_id: int | None = None) -> list[Section]: ...


class ISubmissionRepository:
    def get(self, submission_id: int) -> Submission | None: ...
    def create(self, student_id: int, section_id: int, data: SubmissionInput,
               evidence: list[EvidenceFile]) -> Submission: ...
    def resubmit(self, submission_id: int, data: SubmissionInput,
                 evidence: list[EvidenceFile]) -> Submission: ...
    def record_review(self, submission_id: int, state: ReviewState, comments: str | None,
                      reviewer_id: int, reviewed_at: datetime) -> Submission: ...
    def list_for_student(self, student_id: int) -> list[Submission]: ...
    def list_for_teacher(self, teacher_id: int, state: ReviewState | None = None) -> list[Submission]: ...
    def get_evidence(self, evidence_id: int) -> tuple[EvidenceFile, Submission] | None: ...


class INotificationOutbox:
    def enqueue(self, recipient: str, subject: str, body: str) -> Notification: ...
    def get(self, notification_id: int) -> Notification | None: ...
    def list(self, status: str | None = None) -> list[Notification]: ...
    def requeue(self, notification_id: int) -> Notification: ...


class IUnitOfWork:
    accounts: IAccountRepository
    resets: IPasswordResetRepository
    sections: ISectionRepository
    submissions: ISubmissionRepository
    outbox: INotificationOutbox

    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...


class IEvidenceStorage:
    def save(self, upload: EvidenceUpload, max_bytes: int) -> EvidenceFile: ...
    def delete(self, filename: str) -> None: ...
    def path(self, filename: str): ...
