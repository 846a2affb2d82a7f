from email.message import EmailMessage
from typing import Optional, Protocol

import aiosmtplib
import structlog

from shared.config.settings import Settings
from shared.errors import ExternalServiceError

logger = structlog.get_logger(__name__)


class Notifier(Protocol):
    async def send(self, to: str, subject: str, html: str) -> None:
        ...


class SmtpNotifier:
    """Delivers HTML email through the configured SMTP relay."""

    def __init__(
        self,
        host: Optional[str],
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpNotifier":
        return cls(
            host=settings.email_host,
            port=settings.email_port,
            username=settings.email_user,
            password=settings.email_pass,
            timeout=settings.email_timeout_seconds,
        )

    def build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender or "no-reply@localhost"
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html, subtype="html")
        return message

    async def send(self, to: str, subject: str, html: str) -> None:
        if not self.host:
            raise ExternalServiceError("EMAIL_HOST is not configured")

        message = self.build_message(to, subject, html)
        try:
            # No implicit TLS; STARTTLS is negotiated when the server offers it.
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                use_tls=False,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise ExternalServiceError(f"Email delivery to {to} failed: {e}") from e

        logger.info("email_sent", to=to, subject=subject)
