import structlog

from ...domain.entities import Notification, Role
from ...domain.errors import NotFound, ValidationError
from ..authorization import require_role
from ..dto import Identity
from ..interfaces import IUnitOfWork

logger = structlog.get_logger()

STATUSES = ("pending", "sending", "sent", "failed")


class ListNotifications:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, status: str | None = None) -> list[Notification]:
        require_role(actor, {Role.ADMIN})
        if status is not None and status not in STATUSES:
            raise ValidationError(f"Status must be one of: {', '.join(STATUSES)}")
        return self.uow.outbox.list(status)


class RetryNotification:
    """Put a notification back in the queue with a fresh attempt budget."""

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, notification_id: int) -> Notification:
        require_role(actor, {Role.ADMIN})
        if self.uow.outbox.get(notification_id) is None:
            raise NotFound("Notification not found")
        note = self.uow.outbox.requeue(notification_id)
        self.uow.commit()
        logger.info("notification_requeued", notification_id=notification_id)
        return note
