from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class ReviewState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


@dataclass(frozen=True)
class Account:
    id: int | None
    email: str
    password_hash: str
    role: Role = Role.STUDENT
    approved: bool = False
    active: bool = True
    created_at: datetime | None = None


@dataclass(frozen=True)
class PasswordReset:
    account_id: int
    code_hash: str
    expires_at: datetime


@dataclass(frozen=True)
class Section:
    id: int | None
    name: str
    teacher_id: int
    student_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class EvidenceFile:
    id: int | None
    filename: str
    original_name: str
    mimetype: str
    size: int


@dataclass(frozen=True)
class Submission:
    id: int | None
    student_id: int
    section_id: int
    title: str
    description: str
    categories: tuple[str, ...]
    location: str
    start_date: date
    end_date: date
    learning_outcomes: tuple[str, ...]
    un_goals: tuple[str, ...]
    investigation: str
    learner_profile: str
    supervisor_name: str
    progress_status: str
    review_state: ReviewState = ReviewState.PENDING
    teacher_comments: str | None = None
    denial_comments: str | None = None
    reviewed_by_id: int | None = None
    reviewed_at: datetime | None = None
    submitted_at: datetime | None = None
    revision: int = 0
    student_email: str | None = None
    evidence: tuple[EvidenceFile, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Notification:
    id: int | None
    recipient: str
    subject: str
    body: str
    status: str = "pending"
    attempts: int = 0
    last_error: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()
