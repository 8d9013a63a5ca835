"""Subjects and bodies of the emails queued in the outbox."""


def reset_code(code: str, ttl_minutes: int) -> tuple[str, str]:
    return (
        "Password Reset OTP",
        f"Your OTP for password reset is: {code}. It expires in {ttl_minutes} minutes.",
    )


def admin_password(email: str, password: str) -> tuple[str, str]:
    return (
        "CAS Tracker administrator password",
        f"A password reset was requested for {email}.\n"
        f"The new administrator password is: {password}\n"
        "Sign in and keep it somewhere safe.",
    )


def account_approved(role: str) -> tuple[str, str]:
    return (
        "Your CAS Tracker account has been approved",
        f"Your account has been approved with the role '{role}'. You can now sign in.",
    )


def project_reviewed(title: str, approved: bool, comments: str | None) -> tuple[str, str]:
    decision = "approved" if approved else "denied"
    body = f"Your project '{title}' has been {decision}."
    if comments:
        body += f"\n\nTeacher comments:\n{comments}"
    if not approved:
        body += "\n\nYou can edit the project and resubmit it for review."
    return f"Project {decision}: {title}", body
