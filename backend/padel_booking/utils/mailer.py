from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, Protocol

from pydantic import BaseModel

from ..config import Settings

logger = logging.getLogger(__name__)


class EmailRequest(BaseModel):
    to: str | list[str]
    subject: str
    text: Optional[str] = None
    html: Optional[str] = None


class EmailResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


class Mailer(Protocol):
    async def send(self, request: EmailRequest) -> EmailResponse: ...


def _recipients(to: str | list[str]) -> list[str]:
    if isinstance(to, str):
        return [to] if to else []
    return [addr for addr in to if addr]


class SmtpMailer:
    """Relay mail through the configured SMTP server.

    Delivery problems are reported in the returned ``EmailResponse``; ``send``
    does not raise for them.
    """

    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.secure = settings.smtp_secure
        self.sender = formataddr((settings.smtp_from_name, settings.smtp_from_email))

    def build_message(self, request: EmailRequest) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = ", ".join(_recipients(request.to))
        message["Subject"] = request.subject
        message.set_content(request.text or "")
        message.add_alternative(request.html or request.text or "", subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        smtp_cls = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
        with smtp_cls(self.host, self.port, timeout=10) as client:
            if not self.secure:
                client.ehlo()
                if client.has_extn("starttls"):
                    client.starttls()
            if self.user and self.password:
                client.login(self.user, self.password)
            client.send_message(message)

    async def send(self, request: EmailRequest) -> EmailResponse:
        if not _recipients(request.to) or not request.subject or not (request.text or request.html):
            return EmailResponse(success=False, error="Missing required fields")
        message = self.build_message(request)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError):
            logger.exception("email delivery failed subject=%s", request.subject)
            return EmailResponse(success=False, error="Failed to send email")
        return EmailResponse(success=True, message="Email sent successfully")
