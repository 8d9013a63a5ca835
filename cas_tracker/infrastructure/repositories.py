from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import (
    AccountORM, EvidenceFileORM, NotificationORM, PasswordResetORM, SectionMembershipORM,
    SectionORM, SubmissionORM,
)
from ..domain.entities import (
    Account, EvidenceFile, Notification, PasswordReset, ReviewState, Role, Section, Submission,
)
from ..domain.errors import Conflict
from ..domain.otp import utcnow
from ..domain.submissions import SubmissionInput
from ..application.interfaces import (
    IAccountRepository, INotificationOutbox, IPasswordResetRepository, ISectionRepository,
    ISubmissionRepository, IUnitOfWork,
)


def account_to_domain(a: AccountORM) -> Account:
    return Account(id=a.id, email=a.email, password_hash=a.password_hash, role=Role(a.role),
                   approved=a.approved, active=a.active, created_at=a.created_at)


def section_to_domain(s: SectionORM) -> Section:
    return Section(id=s.id, name=s.name, teacher_id=s.teacher_id,
                   student_ids=tuple(m.student_id for m in s.memberships))


def evidence_to_domain(e: EvidenceFileORM) -> EvidenceFile:
    return EvidenceFile(id=e.id, filename=e.filename, original_name=e.original_name,
                        mimetype=e.mimetype, size=e.size)


def submission_to_domain(s: SubmissionORM) -> Submission:
    return Submission(
        id=s.id, student_id=s.student_id, section_id=s.section_id,
        title=s.title, description=s.description, categories=tuple(s.categories),
        location=s.location, start_date=s.start_date, end_date=s.end_date,
        learning_outcomes=tuple(s.learning_outcomes), un_goals=tuple(s.un_goals),
        investigation=s.investigation, learner_profile=s.learner_profile,
        supervisor_name=s.supervisor_name, progress_status=s.progress_status,
        review_state=ReviewState(s.review_state), teacher_comments=s.teacher_comments,
        denial_comments=s.denial_comments, reviewed_by_id=s.reviewed_by_id,
        reviewed_at=s.reviewed_at, submitted_at=s.submitted_at, revision=s.revision,
        student_email=s.student.email if s.student else None,
        evidence=tuple(evidence_to_domain(e) for e in s.evidence),
    )


def notification_to_domain(n: NotificationORM) -> Notification:
    return Notification(id=n.id, recipient=n.recipient, subject=n.subject, body=n.body,
                        status=n.status, attempts=n.attempts, last_error=n.last_error,
                        created_at=n.created_at, sent_at=n.sent_at)


class AccountRepository(IAccountRepository):
    def __init__(self, db: Session): self.db = db

    def get(self, account_id: int) -> Account | None:
        row = self.db.get(AccountORM, account_id)
        return account_to_domain(row) if row else None

    def get_by_email(self, email: str) -> Account | None:
        row = self.db.query(AccountORM).filter(AccountORM.email == email).first()
        return account_to_domain(row) if row else None

    def create(self, email: str, password_hash: str, role: Role = Role.STUDENT,
               approved: bool = False, active: bool = True) -> Account:
        row = AccountORM(email=email, password_hash=password_hash, role=role.value,
                         approved=approved, active=active)
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("User already exists")
        return account_to_domain(row)

    def update(self, account_id: int, **fields) -> Account:
        row = self.db.get(AccountORM, account_id)
        for name, value in fields.items():
            if isinstance(value, Role):
                value = value.value
            setattr(row, name, value)
        self.db.flush()
        return account_to_domain(row)

    def list(self, approved: bool | None = None) -> list[Account]:
        q = self.db.query(AccountORM)
        if approved is not None:
            q = q.filter(AccountORM.approved == approved)
        return [account_to_domain(r) for r in q.order_by(AccountORM.id).all()]


class PasswordResetRepository(IPasswordResetRepository):
    def __init__(self, db: Session): self.db = db

    def _row(self, account_id: int) -> PasswordResetORM | None:
        return self.db.query(PasswordResetORM).filter(
            PasswordResetORM.account_id == account_id).first()

    def get(self, account_id: int) -> PasswordReset | None:
        row = self._row(account_id)
        if not row:
            return None
        return PasswordReset(account_id=row.account_id, code_hash=row.code_hash,
                             expires_at=row.expires_at)

    def put(self, account_id: int, code_hash: str, expires_at: datetime) -> PasswordReset:
        row = self._row(account_id)
        if row is None:
            row = PasswordResetORM(account_id=account_id)
            self.db.add(row)
        row.code_hash = code_hash
        row.expires_at = expires_at
        self.db.flush()
        return PasswordReset(account_id=account_id, code_hash=code_hash, expires_at=expires_at)

    def delete(self, account_id: int) -> None:
        row = self._row(account_id)
        if row is not None:
            self.db.delete(row)
            self.db.flush()


class SectionRepository(ISectionRepository):
    def __init__(self, db: Session): self.db = db

    def get(self, section_id: int) -> Section | None:
        row = self.db.get(SectionORM, section_id)
        return section_to_domain(row) if row else None

    def get_by_name(self, name: str) -> Section | None:
        row = self.db.query(SectionORM).filter(SectionORM.name == name).first()
        return section_to_domain(row) if row else None

    def create(self, name: str, teacher_id: int) -> Section:
        row = SectionORM(name=name, teacher_id=teacher_id)
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("A section with this name already exists")
        return section_to_domain(row)

    def set_teacher(self, section_id: int, teacher_id: int) -> Section:
        row = self.db.get(SectionORM, section_id)
        row.teacher_id = teacher_id
        self.db.flush()
        return section_to_domain(row)

    def add_student(self, section_id: int, student_id: int) -> Section:
        target = self.db.get(SectionORM, section_id)
        membership = self.db.query(SectionMembershipORM).filter(
            SectionMembershipORM.student_id == student_id).first()
        if membership is None:
            target.memberships.append(SectionMembershipORM(student_id=student_id))
        elif membership.section_id != section_id:
            membership.section = target
        self.db.flush()
        return section_to_domain(target)

    def remove_student(self, section_id: int, student_id: int) -> bool:
        row = self.db.get(SectionORM, section_id)
        membership = next((m for m in row.memberships if m.student_id == student_id), None)
        if membership is None:
            return False
        row.memberships.remove(membership)
        self.db.flush()
        return True

    def section_of_student(self, student_id: int) -> Section | None:
        row = (self.db.query(SectionORM)
               .join(SectionMembershipORM, SectionMembershipORM.section_id == SectionORM.id)
               .filter(SectionMembershipORM.student_id == student_id)
               .first())
        return section_to_domain(row) if row else None

    def list(self, teacher_id: int | None = None) -> list[Section]:
        q = self.db.query(SectionORM)
        if teacher_id is not None:
            q = q.filter(SectionORM.teacher_id == teacher_id)
        return [section_to_domain(r) for r in q.order_by(SectionORM.name).all()]


def _evidence_rows(evidence: list[EvidenceFile]) -> list[EvidenceFileORM]:
    return [EvidenceFileORM(filename=e.filename, original_name=e.original_name,
                            mimetype=e.mimetype, size=e.size) for e in evidence]


def _apply_input(row: SubmissionORM, data: SubmissionInput) -> None:
    row.title = data.title.strip()
    row.description = data.description.strip()
    row.categories = list(data.categories)
    row.location = data.location
    row.start_date = data.start_date
    row.end_date = data.end_date
    row.learning_outcomes = list(data.learning_outcomes)
    row.un_goals = list(data.un_goals)
    row.investigation = data.investigation.strip()
    row.learner_profile = data.learner_profile.strip()
    row.supervisor_name = data.supervisor_name.strip()
    row.progress_status = data.progress_status


class SubmissionRepository(ISubmissionRepository):
    def __init__(self, db: Session): self.db = db

    def get(self, submission_id: int) -> Submission | None:
        row = self.db.get(SubmissionORM, submission_id)
        return submission_to_domain(row) if row else None

    def create(self, student_id: int, section_id: int, data: SubmissionInput,
               evidence: list[EvidenceFile]) -> Submission:
        row = SubmissionORM(student_id=student_id, section_id=section_id,
                            review_state=ReviewState.PENDING.value, revision=0,
                            submitted_at=utcnow())
        _apply_input(row, data)
        row.evidence = _evidence_rows(evidence)
        self.db.add(row)
        self.db.flush()
        return submission_to_domain(row)

    def resubmit(self, submission_id: int, data: SubmissionInput,
                 evidence: list[EvidenceFile]) -> Submission:
        row = self.db.get(SubmissionORM, submission_id)
        _apply_input(row, data)
        row.evidence = _evidence_rows(evidence)
        row.review_state = ReviewState.PENDING.value
        row.teacher_comments = None
        row.denial_comments = None
        row.reviewed_by_id = None
        row.reviewed_at = None
        row.submitted_at = utcnow()
        row.revision += 1
        self.db.flush()
        return submission_to_domain(row)

    def record_review(self, submission_id: int, state: ReviewState, comments: str | None,
                      reviewer_id: int, reviewed_at: datetime) -> Submission:
        row = self.db.get(SubmissionORM, submission_id)
        row.review_state = state.value
        if state is ReviewState.APPROVED:
            row.teacher_comments = comments
        else:
            row.denial_comments = comments
        row.reviewed_by_id = reviewer_id
        row.reviewed_at = reviewed_at
        self.db.flush()
        return submission_to_domain(row)

    def list_for_student(self, student_id: int) -> list[Submission]:
        rows = (self.db.query(SubmissionORM)
                .filter(SubmissionORM.student_id == student_id)
                .order_by(SubmissionORM.id.desc())
                .all())
        return [submission_to_domain(r) for r in rows]

    def list_for_teacher(self, teacher_id: int, state: ReviewState | None = None) -> list[Submission]:
        q = (self.db.query(SubmissionORM)
             .join(SectionORM, SectionORM.id == SubmissionORM.section_id)
             .filter(SectionORM.teacher_id == teacher_id))
        if state is not None:
            q = q.filter(SubmissionORM.review_state == state.value)
        return [submission_to_domain(r) for r in q.order_by(SubmissionORM.id.desc()).all()]

    def get_evidence(self, evidence_id: int) -> tuple[EvidenceFile, Submission] | None:
        row = self.db.get(EvidenceFileORM, evidence_id)
        if row is None:
            return None
        return evidence_to_domain(row), submission_to_domain(row.submission)


class OutboxRepository(INotificationOutbox):
    def __init__(self, db: Session): self.db = db

    def enqueue(self, recipient: str, subject: str, body: str) -> Notification:
        row = NotificationORM(recipient=recipient, subject=subject, body=body,
                              status="pending", attempts=0, created_at=utcnow())
        self.db.add(row)
        self.db.flush()
        return notification_to_domain(row)

    def get(self, notification_id: int) -> Notification | None:
        row = self.db.get(NotificationORM, notification_id)
        return notification_to_domain(row) if row else None

    def list(self, status: str | None = None) -> list[Notification]:
        q = self.db.query(NotificationORM)
        if status is not None:
            q = q.filter(NotificationORM.status == status)
        return [notification_to_domain(r) for r in q.order_by(NotificationORM.id.desc()).all()]

    def requeue(self, notification_id: int) -> Notification:
        row = self.db.get(NotificationORM, notification_id)
        row.status = "pending"
        row.attempts = 0
        row.last_error = None
        self.db.flush()
        return notification_to_domain(row)

    def claim(self, limit: int) -> list[Notification]:
        """Move up to ``limit`` pending rows to ``sending``; only rows this call flipped are returned."""
        ids = [row_id for (row_id,) in (self.db.query(NotificationORM.id)
                                        .filter(NotificationORM.status == "pending")
                                        .order_by(NotificationORM.id)
                                        .limit(limit))]
        claimed = []
        for notification_id in ids:
            updated = (self.db.query(NotificationORM)
                       .filter(NotificationORM.id == notification_id,
                               NotificationORM.status == "pending")
                       .update({"status": "sending"}, synchronize_session=False))
            if updated == 1:
                claimed.append(notification_id)
        rows = (self.db.query(NotificationORM)
                .filter(NotificationORM.id.in_(claimed))
                .order_by(NotificationORM.id)
                .all()) if claimed else []
        return [notification_to_domain(r) for r in rows]

    def mark_sent(self, notification_id: int) -> None:
        row = self.db.get(NotificationORM, notification_id)
        row.status = "sent"
        row.attempts += 1
        row.last_error = None
        row.sent_at = utcnow()
        self.db.flush()

    def mark_failed(self, notification_id: int, error: str, max_attempts: int) -> Notification:
        row = self.db.get(NotificationORM, notification_id)
        row.attempts += 1
        row.last_error = error[:1000]
        # released back to the queue until the attempt budget runs out
        row.status = "failed" if row.attempts >= max_attempts else "pending"
        self.db.flush()
        return notification_to_domain(row)


class SqlAlchemyUnitOfWork(IUnitOfWork):
    """Repositories sharing one session, so a change and its outbox rows commit together."""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.resets = PasswordResetRepository(db)
        self.sections = SectionRepository(db)
        self.submissions = SubmissionRepository(db)
        self.outbox = OutboxRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
