"""
Contact-form delivery through an SMTP relay, using ``aiosmtplib``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Protocol

import aiosmtplib

from folio.config import Settings
from folio.errors import UpstreamError, ValidationError
from folio.schemas import ContactRequest

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    async def send(self, message: EmailMessage) -> None:
        ...


class SmtpMailer:
    def __init__(self, host: str, port: int, user: str = "", password: str = "") -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(settings.SMTP_HOST, settings.SMTP_PORT, settings.SMTP_USER, settings.SMTP_PASSWORD)

    async def send(self, message: EmailMessage) -> None:
        # STARTTLS is negotiated whenever the relay advertises it.
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.user or None,
                password=self.password or None,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery via %s:%s failed: %s", self.host, self.port, exc)
            raise UpstreamError("Failed to send message") from exc


@dataclass
class InMemoryMailer:
    """Test double that records outgoing messages."""

    outbox: list[EmailMessage] = field(default_factory=list)
    fail: bool = False

    async def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise UpstreamError("Failed to send message")
        self.outbox.append(message)


def build_contact_message(settings: Settings, data: ContactRequest) -> EmailMessage:
    # Header values must stay on one line; the address is already validated.
    name = " ".join(data.name.split())

    message = EmailMessage()
    message["From"] = settings.SMTP_FROM_EMAIL or settings.CONTACT_TO_EMAIL
    message["To"] = settings.CONTACT_TO_EMAIL
    message["Reply-To"] = data.email
    message["Subject"] = f"New message from {name}"
    message.set_content(
        f"Name: {data.name}\n"
        f"Email: {data.email}\n"
        f"Message: {data.message}\n"
    )
    return message


async def send_contact(mailer: Mailer, settings: Settings, data: ContactRequest) -> None:
    if not (data.name.strip() and data.email and data.message.strip()):
        raise ValidationError("Missing required fields")
    await mailer.send(build_contact_message(settings, data))
    logger.info("Relayed contact message from %r", data.email)
