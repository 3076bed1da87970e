"""
Email Providers
===============

Pluggable delivery strategies behind a single ``send(to, subject, html)``
capability:
- BREVO: Brevo transactional email HTTP API
- SMTP: any SMTP relay with STARTTLS
- CONSOLE: logs the message instead of sending it (development)

Author: jetgause
Created: 2026-10-18
"""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from enum import Enum
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class ProviderName(Enum):
    """Supported email providers."""
    BREVO = "brevo"
    SMTP = "smtp"
    CONSOLE = "console"


@dataclass
class DeliveryOutcome:
    """Result of one delivery attempt."""
    success: bool
    provider: str
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class NotificationSettings:
    """Configuration for email providers."""
    provider: str = "console"
    sender_email: str = "noreply@beeminer.com"
    sender_name: str = "BeeMiner"

    # Brevo configuration
    brevo_api_key: str = ""
    brevo_api_url: str = "https://api.brevo.com/v3/smtp/email"

    # SMTP configuration
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""

    timeout: int = 10


def mask_secret(secret: str, visible: int = 7) -> str:
    if not secret:
        return "NOT SET"
    return f"{secret[:visible]}***"


class EmailProvider:
    """Base class for email delivery strategies."""

    name = "base"

    def __init__(self, settings: NotificationSettings):
        self.settings = settings

    def is_configured(self) -> bool:
        return True

    def send(self, to: str, subject: str, html: str) -> DeliveryOutcome:
        raise NotImplementedError

    def _not_configured(self) -> DeliveryOutcome:
        return DeliveryOutcome(success=False, provider=self.name, error="Email service not configured")


class BrevoEmailProvider(EmailProvider):
    """Sends through the Brevo transactional email API."""

    name = ProviderName.BREVO.value

    def is_configured(self) -> bool:
        return bool(self.settings.brevo_api_key)

    def send(self, to: str, subject: str, html: str) -> DeliveryOutcome:
        if not self.is_configured():
            logger.warning("Brevo API key not configured, email skipped")
            return self._not_configured()

        payload = {
            "sender": {"email": self.settings.sender_email, "name": self.settings.sender_name},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
        }

        response = requests.post(
            self.settings.brevo_api_url,
            json=payload,
            headers={
                "api-key": self.settings.brevo_api_key,
                "accept": "application/json",
                "content-type": "application/json",
            },
            timeout=self.settings.timeout,
        )

        if response.status_code in (200, 201, 202):
            message_id = None
            try:
                message_id = response.json().get("messageId")
            except ValueError:
                pass
            logger.info(f"Email sent successfully via Brevo: {message_id}")
            return DeliveryOutcome(success=True, provider=self.name, message_id=message_id)

        logger.error(f"Brevo email failed: {response.status_code} - {response.text}")
        return DeliveryOutcome(
            success=False,
            provider=self.name,
            error=f"HTTP {response.status_code}: {response.text}",
        )


class SMTPEmailProvider(EmailProvider):
    """Sends through an SMTP relay with STARTTLS."""

    name = ProviderName.SMTP.value

    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host)

    def send(self, to: str, subject: str, html: str) -> DeliveryOutcome:
        if not self.is_configured():
            logger.warning("SMTP host not configured, email skipped")
            return self._not_configured()

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.settings.sender_name} <{self.settings.sender_email}>"
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=self.settings.timeout) as server:
            server.starttls()
            if self.settings.smtp_username and self.settings.smtp_password:
                server.login(self.settings.smtp_username, self.settings.smtp_password)
            server.send_message(msg)

        logger.info(f"Email sent successfully via SMTP to {to}")
        return DeliveryOutcome(success=True, provider=self.name)


class ConsoleEmailProvider(EmailProvider):
    """Logs outgoing email instead of delivering it."""

    name = ProviderName.CONSOLE.value

    def send(self, to: str, subject: str, html: str) -> DeliveryOutcome:
        logger.info(f"[console email] to={to} subject={subject!r} ({len(html)} bytes)")
        return DeliveryOutcome(success=True, provider=self.name)


PROVIDERS = {
    ProviderName.BREVO: BrevoEmailProvider,
    ProviderName.SMTP: SMTPEmailProvider,
    ProviderName.CONSOLE: ConsoleEmailProvider,
}


def create_provider(settings: NotificationSettings) -> EmailProvider:
    """
    Build the provider named in ``settings``.

    Raises:
        ValueError: If the provider name is not supported
    """
    try:
        name = ProviderName(settings.provider.strip().lower())
    except ValueError:
        supported = ", ".join(p.value for p in ProviderName)
        raise ValueError(f"Unsupported email provider '{settings.provider}'. Use one of: {supported}")
    return PROVIDERS[name](settings)
