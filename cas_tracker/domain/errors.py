"""Failure taxonomy shared by every use case.

Use cases raise these; the HTTP layer turns them into status codes in one
place. ``TransientFault`` is the only server-side category and its message
never reaches the caller.
"""


class DomainError(Exception):
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra(self) -> dict:
        return {}


class ValidationError(DomainError):
    default_message = "Invalid request"


class InvalidCredentials(ValidationError):
    default_message = "Invalid email or password"


class PolicyViolation(DomainError):
    default_message = "Request violates policy"


class WeakPassword(PolicyViolation):
    default_message = (
        "Password must be at least 8 characters long and include uppercase, "
        "lowercase, number, and special character."
    )

    def __init__(self, missing: list[str], message: str | None = None):
        super().__init__(message)
        self.missing = list(missing)

    def extra(self) -> dict:
        return {"missing": self.missing}


class DomainRejected(PolicyViolation):
    default_message = "Invalid email domain"


class InvalidOtp(PolicyViolation):
    default_message = "Invalid or expired OTP"


class Conflict(DomainError):
    default_message = "Conflict"


class NotFound(DomainError):
    default_message = "Not found"


class Forbidden(DomainError):
    default_message = "Access denied"


class NotApproved(Forbidden):
    default_message = "Account not approved yet. Please contact admin."


class Deactivated(Forbidden):
    default_message = "Account is deactivated. Please contact admin."


class Unauthenticated(DomainError):
    default_message = "Access denied"


class TransientFault(DomainError):
    default_message = "Server error"
