# helpdesk/notification/dispatcher.py
"""Fire-and-forget email delivery."""

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Protocol

from fastapi import BackgroundTasks

from helpdesk.core.config import Settings
from helpdesk.core.logging_config import logger


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str


class Transport(Protocol):
    def send(self, message: OutgoingEmail) -> None: ...


class SmtpTransport:
    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str | None,
        secure: bool,
        from_name: str,
        from_email: str,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.secure = secure
        self.sender = formataddr((from_name, from_email))
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpTransport | None":
        if not settings.SMTP_HOST or not settings.SMTP_USER:
            logger.warning("SMTP not configured - email notifications disabled")
            return None
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            secure=settings.SMTP_SECURE,
            from_name=settings.SMTP_FROM_NAME,
            from_email=settings.SMTP_FROM_EMAIL,
        )

    def send(self, message: OutgoingEmail) -> None:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self.sender
        msg["To"] = message.to
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")

        if self.secure:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with server:
            if not self.secure:
                server.starttls()
            server.login(self.user, self.password or "")
            server.send_message(msg)


class NotificationDispatcher:
    """Delivers messages through a transport; delivery problems are logged, never raised."""

    def __init__(self, transport: Transport | None):
        self.transport = transport

    def deliver(self, message: OutgoingEmail) -> bool:
        if self.transport is None:
            logger.warning(f'Email not sent - SMTP not configured (to: {message.to}, subject: "{message.subject}")')
            return False
        try:
            self.transport.send(message)
        except Exception as e:
            logger.error(f'Failed to send email - To: {message.to}, Subject: "{message.subject}", Error: {e}')
            return False
        logger.info(f'Email sent - To: {message.to}, Subject: "{message.subject}"')
        return True


class Notifier:
    """Request-scoped queue: messages go out after the response, once the mutation has committed."""

    def __init__(self, dispatcher: NotificationDispatcher, background_tasks: BackgroundTasks):
        self.dispatcher = dispatcher
        self.background_tasks = background_tasks

    def send(self, message: OutgoingEmail) -> None:
        self.background_tasks.add_task(self.dispatcher.deliver, message)
