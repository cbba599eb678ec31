"""
Outbound email over SMTP.
Delivery runs in a worker thread so the event loop is never blocked.
"""

import asyncio
import smtplib
import logging
from email.message import EmailMessage
from typing import Optional

from app.config import Settings, get_settings
from app.utils.exceptions import DependencyError

logger = logging.getLogger(__name__)


class MailService:
    """SMTP mail sender configured from settings."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or get_settings()

    def _build(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.config.mail_from
        msg["To"] = to
        msg.set_content(body)
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30) as smtp:
            if self.config.smtp_use_tls:
                smtp.starttls()
            if self.config.smtp_username:
                smtp.login(self.config.smtp_username, self.config.smtp_password or "")
            smtp.send_message(msg)

    async def send(self, to: str, subject: str, body: str) -> None:
        """
        Send a plain-text email.

        Without an SMTP host the message is only logged.

        Raises:
            DependencyError: If the SMTP server refuses or cannot be reached
        """
        if not self.config.mail_configured:
            logger.warning(f"SMTP not configured; email to {to} not sent: {subject}")
            return

        msg = self._build(to, subject, body)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            raise DependencyError("Email could not be sent")

        logger.info(f"Sent email to {to}: {subject}")
