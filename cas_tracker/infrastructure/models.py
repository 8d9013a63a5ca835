from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, Text, func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase): pass


class AccountORM(Base):
    __tablename__ = "accounts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), default="student", nullable=False)
    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"AccountORM(id={self.id!r}, email={self.email!r}, role={self.role!r})"


class PasswordResetORM(Base):
    __tablename__ = "password_resets"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, nullable=False)
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SectionORM(Base):
    __tablename__ = "sections"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    teacher_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)

    memberships: Mapped[list["SectionMembershipORM"]] = relationship(
        "SectionMembershipORM",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="SectionMembershipORM.student_id",
    )

    def __repr__(self) -> str:
        return f"SectionORM(id={self.id!r}, name={self.name!r})"


class SectionMembershipORM(Base):
    __tablename__ = "section_students"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    section_id: Mapped[int] = mapped_column(
        ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True)
    # a student belongs to at most one section
    student_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), unique=True, nullable=False)

    section: Mapped["SectionORM"] = relationship("SectionORM", back_populates="memberships")


class SubmissionORM(Base):
    __tablename__ = "submissions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)
    section_id: Mapped[int] = mapped_column(ForeignKey("sections.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    location: Mapped[str] = mapped_column(String(64), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    learning_outcomes: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    un_goals: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    investigation: Mapped[str] = mapped_column(Text, nullable=False)
    learner_profile: Mapped[str] = mapped_column(Text, nullable=False)
    supervisor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    progress_status: Mapped[str] = mapped_column(String(32), nullable=False)
    review_state: Mapped[str] = mapped_column(String(16), default="pending", nullable=False, index=True)
    teacher_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    denial_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by_id: Mapped[int | None] = mapped_column(ForeignKey("accounts.id"), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    revision: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    student: Mapped["AccountORM"] = relationship("AccountORM", foreign_keys=[student_id])
    evidence: Mapped[list["EvidenceFileORM"]] = relationship(
        "EvidenceFileORM",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="EvidenceFileORM.id",
    )

    def __repr__(self) -> str:
        return f"SubmissionORM(id={self.id!r}, title={self.title!r}, state={self.review_state!r})"


class EvidenceFileORM(Base):
    __tablename__ = "evidence_files"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    submission_id: Mapped[int] = mapped_column(
        ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    filename: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mimetype: Mapped[str] = mapped_column(String(127), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)

    submission: Mapped["SubmissionORM"] = relationship("SubmissionORM", back_populates="evidence")


class NotificationORM(Base):
    __tablename__ = "notifications"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False, index=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


__all__ = [
    "Base",
    "AccountORM",
    "PasswordResetORM",
    "SectionORM",
    "SectionMembershipORM",
    "SubmissionORM",
    "EvidenceFileORM",
    "NotificationORM",
]
