from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, computed_field
from pydantic.alias_generators import to_camel

from ...domain.entities import ReviewState, Role


class CamelReq(BaseModel):
    """Request bodies accept the web client's camelCase keys as well as snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupReq(CamelReq):
    email: EmailStr
    password: str

class LoginReq(CamelReq):
    email: EmailStr
    password: str

class ForgotPasswordReq(CamelReq):
    email: EmailStr

class VerifyOtpReq(CamelReq):
    email: EmailStr
    otp: str

class ResetPasswordReq(CamelReq):
    email: EmailStr
    otp: str
    new_password: str

class ApproveReq(CamelReq):
    role: str = "student"

class CreateSectionReq(CamelReq):
    name: str
    teacher_id: int

class SectionTeacherReq(CamelReq):
    section_id: int
    teacher_id: int

class SectionStudentReq(CamelReq):
    section_id: int
    student_id: int

class ApproveProjectReq(CamelReq):
    teacher_comments: str | None = None

class DenyProjectReq(CamelReq):
    comments: str


class MessageResp(BaseModel):
    message: str

class TokenResp(BaseModel):
    access_token: str
    # the web client reads `token`
    token: str
    token_type: str = "bearer"
    role: Role

class AccountResp(BaseModel):
    id: int
    email: str
    role: Role
    approved: bool
    active: bool
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)

class SectionResp(BaseModel):
    id: int
    name: str
    teacher_id: int
    student_ids: list[int] = []
    model_config = ConfigDict(from_attributes=True)

class EvidenceResp(BaseModel):
    id: int
    filename: str
    original_name: str
    mimetype: str
    size: int
    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def url(self) -> str:
        return f"/api/evidence/{self.id}"

class SubmissionResp(BaseModel):
    id: int
    student_id: int
    student_email: str | None = None
    section_id: int
    title: str
    description: str
    categories: list[str]
    location: str
    start_date: date
    end_date: date
    learning_outcomes: list[str]
    un_goals: list[str]
    investigation: str
    learner_profile: str
    supervisor_name: str
    progress_status: str
    review_state: ReviewState
    teacher_comments: str | None = None
    denial_comments: str | None = None
    reviewed_at: datetime | None = None
    submitted_at: datetime | None = None
    revision: int
    evidence: list[EvidenceResp] = []
    model_config = ConfigDict(from_attributes=True)

class NotificationResp(BaseModel):
    id: int
    recipient: str
    subject: str
    status: str
    attempts: int
    last_error: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
