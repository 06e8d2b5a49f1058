"""SMTP email sender.

``send_email`` either delivers or raises ``NotificationError``. In sandbox
mode messages are logged and kept in ``outbox`` instead of being sent.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import Config, get_config
from app.core.exceptions import NotificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentEmail:
    to_email: str
    subject: str
    html_body: str


class EmailSender:
    """Sends transactional HTML email through the configured SMTP relay."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()
        self.sandbox_mode = self.config.EMAIL_SANDBOX_MODE
        self.outbox: list[SentEmail] = []

    def send_email(self, to_email: str, subject: str, html_body: str) -> None:
        if not to_email:
            raise NotificationError("Recipient address is empty.")

        if self.sandbox_mode:
            self.outbox.append(SentEmail(to_email=to_email, subject=subject, html_body=html_body))
            logger.info("email.sandbox.sent", extra={"event": "email.sandbox.sent", "to_email": to_email})
            return

        if not self.config.SMTP_SERVER:
            raise NotificationError("SMTP_SERVER is not configured.")

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.config.EMAIL_FROM
        message["To"] = to_email
        message.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(self.config.SMTP_SERVER, self.config.SMTP_PORT, timeout=30) as server:
                server.starttls()
                if self.config.SMTP_USERNAME and self.config.SMTP_PASSWORD:
                    server.login(self.config.SMTP_USERNAME, self.config.SMTP_PASSWORD)
                server.sendmail(self.config.EMAIL_FROM, [to_email], message.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("email.send.failed", extra={"event": "email.send.failed", "to_email": to_email})
            raise NotificationError(f"Failed to send email to {to_email}.") from exc

        logger.info("email.sent", extra={"event": "email.sent", "to_email": to_email})
