import asyncio

from cas_tracker.infrastructure.outbox import dispatch_pending
from cas_tracker.infrastructure.repositories import OutboxRepository

from conftest import FakeMailer

EMAIL = "pupil@fountainheadschools.org"


def notifications(client, headers, status=None):
    params = {"status": status} if status else {}
    response = client.get("/api/admin/notifications", params=params, headers=headers)
    assert response.status_code == 200
    return response.json()


def test_delivered_notification_is_marked_sent(client, admin_headers, make_account, mailer):
    make_account(EMAIL)
    client.post("/api/auth/forgot-password", json={"email": EMAIL})

    [note] = notifications(client, admin_headers)
    assert note["status"] == "sent"
    assert note["attempts"] == 1
    assert note["recipient"] == EMAIL
    assert "body" not in note


def test_mail_outage_does_not_fail_the_request(client, admin_headers, make_account, mailer):
    """The change commits even when the SMTP server is down"""
    make_account(EMAIL)
    mailer.fail = True
    response = client.post("/api/auth/forgot-password", json={"email": EMAIL})
    assert response.status_code == 200

    [note] = notifications(client, admin_headers, status="pending")
    assert note["attempts"] == 1
    assert note["last_error"] == "connection refused"


def test_notification_fails_after_max_attempts(client, admin_headers, make_account, mailer):
    make_account(EMAIL)
    mailer.fail = True
    client.post("/api/auth/forgot-password", json={"email": EMAIL})
    for _ in range(2):
        assert asyncio.run(dispatch_pending(mailer)) == 0

    [note] = notifications(client, admin_headers, status="failed")
    assert note["attempts"] == 3
    assert notifications(client, admin_headers, status="pending") == []
    # failed rows are left alone by later runs
    assert asyncio.run(dispatch_pending(mailer)) == 0


def test_retry_requeues_and_delivers(client, admin_headers, make_account, mailer):
    make_account(EMAIL)
    mailer.fail = True
    client.post("/api/auth/forgot-password", json={"email": EMAIL})
    for _ in range(2):
        asyncio.run(dispatch_pending(mailer))
    [note] = notifications(client, admin_headers, status="failed")

    mailer.fail = False
    response = client.post(f"/api/admin/notifications/{note['id']}/retry", headers=admin_headers)
    assert response.status_code == 200

    [delivered] = notifications(client, admin_headers)
    assert delivered["status"] == "sent"
    assert delivered["attempts"] == 1
    assert delivered["last_error"] is None
    assert mailer.sent[-1]["to"] == EMAIL


def test_retry_unknown_notification(client, admin_headers):
    response = client.post("/api/admin/notifications/999/retry", headers=admin_headers)
    assert response.status_code == 404


def test_notification_status_filter_is_validated(client, admin_headers):
    response = client.get("/api/admin/notifications", params={"status": "lost"}, headers=admin_headers)
    assert response.status_code == 400


class SlowMailer(FakeMailer):
    async def send(self, to, subject, body):
        await asyncio.sleep(0.05)
        await super().send(to, subject, body)


def test_claimed_rows_are_not_claimed_again(client, make_account, mailer, session_factory):
    make_account(EMAIL)
    mailer.fail = True
    client.post("/api/auth/forgot-password", json={"email": EMAIL})

    session = session_factory()
    try:
        outbox = OutboxRepository(session)
        [claimed] = outbox.claim(10)
        assert claimed.status == "sending"
        assert outbox.claim(10) == []
        session.commit()
    finally:
        session.close()


def test_overlapping_dispatch_sends_once(client, admin_headers, make_account, mailer):
    """A background run and the poller racing on the same row deliver it once"""
    make_account(EMAIL)
    mailer.fail = True
    client.post("/api/auth/forgot-password", json={"email": EMAIL})
    slow = SlowMailer()

    async def both():
        return await asyncio.gather(dispatch_pending(slow), dispatch_pending(slow))

    assert sorted(asyncio.run(both())) == [0, 1]
    assert [m["subject"] for m in slow.sent] == ["Password Reset OTP"]
    [note] = notifications(client, admin_headers)
    assert note["status"] == "sent"


def test_sending_is_a_listable_status(client, admin_headers):
    assert notifications(client, admin_headers, status="sending") == []
