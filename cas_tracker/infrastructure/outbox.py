"""Delivery of queued notifications.

Mutations enqueue their emails in the same transaction; this module sends
them afterwards, so a delivery failure never undoes or hides a committed
change. Failed rows are retried on later runs until the attempt limit.

A run claims its rows before sending (pending -> sending), so the background
task of a request and the periodic poller never mail the same row twice.
Session work is synchronous and runs in the threadpool.
"""
import asyncio
import threading

import structlog
from fastapi.concurrency import run_in_threadpool

from . import db as database
from .mailer import MailDeliveryError
from .metrics import notifications_total
from .repositories import OutboxRepository
from ..config import settings

logger = structlog.get_logger()

# one claim at a time per process; the conditional UPDATE covers other workers
_claim_lock = threading.Lock()


def _in_session(work):
    session = database.SessionLocal()
    try:
        result = work(OutboxRepository(session))
        session.commit()
        return result
    finally:
        session.close()


def _claim(limit: int):
    with _claim_lock:
        return _in_session(lambda outbox: outbox.claim(limit))


async def dispatch_pending(mailer, limit: int = 50) -> int:
    """Send up to ``limit`` pending notifications; returns how many were delivered."""
    delivered = 0
    claimed = await run_in_threadpool(_claim, limit)
    for note in claimed:
        try:
            await mailer.send(note.recipient, note.subject, note.body)
        except MailDeliveryError as e:
            failed = await run_in_threadpool(
                _in_session,
                lambda outbox: outbox.mark_failed(note.id, str(e), settings.NOTIFICATION_MAX_ATTEMPTS))
            notifications_total.labels(outcome="failed").inc()
            logger.warning("notification_failed", notification_id=note.id,
                           attempts=failed.attempts, status=failed.status, error=str(e))
            continue
        await run_in_threadpool(_in_session, lambda outbox: outbox.mark_sent(note.id))
        delivered += 1
        notifications_total.labels(outcome="sent").inc()
        logger.info("notification_sent", notification_id=note.id)
    return delivered


async def poll_outbox(mailer, interval: float) -> None:
    while True:
        try:
            await dispatch_pending(mailer)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("outbox_poll_failed")
        await asyncio.sleep(interval)
