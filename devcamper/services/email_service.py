"""
DevCamper API — Email Service
==============================

What:  Sends transactional email (password reset) through an SMTP relay.
How:   smtplib runs in a worker thread (asyncio.to_thread) so a slow relay
       never blocks the event loop.
Who:   AuthService.forgot_password().
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from devcamper.config import settings
from devcamper.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{settings.from_name} <{settings.from_email}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _send_smtp(self, msg: EmailMessage) -> None:
        if not settings.smtp_host:
            raise EmailDeliveryError(context={"reason": "SMTP_HOST not configured"})

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as smtp:
                if settings.smtp_use_tls:
                    smtp.starttls()
                if settings.smtp_user:
                    smtp.login(settings.smtp_user, settings.smtp_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", msg["To"], str(e))
            raise EmailDeliveryError(context={"error_type": type(e).__name__})

    async def send(self, to: str, subject: str, body: str) -> None:
        """
        Raises:
            EmailDeliveryError: relay unconfigured or rejected the message.
        """
        msg = self.build_message(to, subject, body)
        await asyncio.to_thread(self._send_smtp, msg)
        logger.info("Email sent to %s (subject=%r)", to, subject)


email_service = EmailService()
