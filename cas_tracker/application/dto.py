from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

from ..domain.entities import Role


@dataclass(frozen=True)
class Identity:
    id: int
    role: Role
    email: str | None = None


@dataclass
class LoginResult:
    access_token: str
    role: Role


@dataclass
class EvidenceUpload:
    filename: str
    content_type: str
    stream: BinaryIO


class ResetChannel(str, Enum):
    OTP = "otp"
    ADMIN_PASSWORD = "admin_password"
