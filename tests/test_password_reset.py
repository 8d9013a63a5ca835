import re
from datetime import timedelta

from cas_tracker.domain.otp import utcnow
from cas_tracker.infrastructure.models import PasswordResetORM

from conftest import ADMIN_EMAIL, PASSWORD

EMAIL = "pupil@fountainheadschools.org"
NEW_PASSWORD = "N3w!Password"


def request_code(client, mailer, email=EMAIL):
    response = client.post("/api/auth/forgot-password", json={"email": email})
    assert response.status_code == 200
    return re.search(r"\b(\d{6})\b", mailer.sent[-1]["body"]).group(1)


def login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_forgot_password_mails_a_code(client, make_account, mailer):
    make_account(EMAIL)
    response = client.post("/api/auth/forgot-password", json={"email": EMAIL})
    assert response.status_code == 200
    assert response.json()["message"] == "OTP sent to your email"
    assert mailer.sent[-1]["to"] == EMAIL
    assert mailer.sent[-1]["subject"] == "Password Reset OTP"


def test_forgot_password_unknown_email(client, mailer):
    response = client.post("/api/auth/forgot-password", json={"email": "ghost@fountainheadschools.org"})
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"
    assert mailer.sent == []


def test_code_is_stored_hashed(client, make_account, mailer, session_factory):
    make_account(EMAIL)
    code = request_code(client, mailer)
    session = session_factory()
    try:
        row = session.query(PasswordResetORM).one()
        assert row.code_hash != code
        assert len(row.code_hash) == 64
    finally:
        session.close()


def test_verify_does_not_consume_the_code(client, make_account, mailer):
    make_account(EMAIL)
    code = request_code(client, mailer)
    for _ in range(2):
        response = client.post("/api/auth/verify-otp", json={"email": EMAIL, "otp": code})
        assert response.status_code == 200
        assert response.json()["message"] == "OTP verified"


def test_wrong_code_is_rejected(client, make_account, mailer):
    make_account(EMAIL)
    code = request_code(client, mailer)
    wrong = "000000" if code != "000000" else "111111"
    response = client.post("/api/auth/verify-otp", json={"email": EMAIL, "otp": wrong})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired OTP"


def test_reset_password_flow(client, make_account, mailer):
    """Reset with a live code, then the code cannot be replayed"""
    make_account(EMAIL)
    code = request_code(client, mailer)
    payload = {"email": EMAIL, "otp": code, "newPassword": NEW_PASSWORD}

    response = client.post("/api/auth/reset-password", json=payload)
    assert response.status_code == 200
    assert response.json()["message"] == "Password reset successfully"

    assert login(client, EMAIL, NEW_PASSWORD).status_code == 200
    assert login(client, EMAIL, PASSWORD).status_code == 400

    replay = client.post("/api/auth/reset-password", json={**payload, "newPassword": "An0ther!Pass"})
    assert replay.status_code == 400
    assert replay.json()["detail"] == "Invalid or expired OTP"


def test_reset_rejects_weak_password_and_keeps_code(client, make_account, mailer):
    make_account(EMAIL)
    code = request_code(client, mailer)
    response = client.post("/api/auth/reset-password",
                           json={"email": EMAIL, "otp": code, "new_password": "short"})
    assert response.status_code == 400
    assert "missing" in response.json()

    retry = client.post("/api/auth/verify-otp", json={"email": EMAIL, "otp": code})
    assert retry.status_code == 200


def test_new_request_replaces_previous_code(client, make_account, mailer):
    make_account(EMAIL)
    first = request_code(client, mailer)
    second = request_code(client, mailer)
    if first != second:
        response = client.post("/api/auth/verify-otp", json={"email": EMAIL, "otp": first})
        assert response.status_code == 400
    response = client.post("/api/auth/verify-otp", json={"email": EMAIL, "otp": second})
    assert response.status_code == 200


def test_expired_code_is_rejected(client, make_account, mailer, session_factory):
    make_account(EMAIL)
    code = request_code(client, mailer)
    session = session_factory()
    try:
        row = session.query(PasswordResetORM).one()
        row.expires_at = utcnow() - timedelta(minutes=1)
        session.commit()
    finally:
        session.close()

    response = client.post("/api/auth/reset-password",
                           json={"email": EMAIL, "otp": code, "newPassword": NEW_PASSWORD})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired OTP"


def test_admin_reset_sends_new_password_to_recovery_address(client, admin_id, mailer,
                                                            session_factory):
    """The administrator gets a fresh password instead of a code"""
    response = client.post("/api/auth/forgot-password", json={"email": ADMIN_EMAIL})
    assert response.status_code == 200
    assert "recovery address" in response.json()["message"]

    mail = mailer.sent[-1]
    assert mail["to"] == "recovery@example.com"
    password = re.search(r"password is: (\S+)", mail["body"]).group(1)

    assert login(client, ADMIN_EMAIL, password).status_code == 200
    assert login(client, ADMIN_EMAIL, PASSWORD).status_code == 400

    session = session_factory()
    try:
        assert session.query(PasswordResetORM).count() == 0
    finally:
        session.close()
