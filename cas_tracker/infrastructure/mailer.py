"""SMTP delivery for outbox notifications."""
from email.message import EmailMessage

import aiosmtplib
import structlog

from ..config import settings

logger = structlog.get_logger()


class MailDeliveryError(Exception):
    pass


class SmtpMailer:
    def __init__(self, host: str | None, port: int, username: str | None, password: str | None,
                 sender: str, start_tls: bool = True, timeout: float = 30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.start_tls = start_tls
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    async def send(self, to: str, subject: str, body: str) -> None:
        if not self.is_configured:
            raise MailDeliveryError("SMTP host is not configured")
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(str(e)) from e


def get_mailer() -> SmtpMailer:
    return SmtpMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        sender=settings.EMAIL_FROM,
        start_tls=settings.SMTP_START_TLS,
    )
