"""
Notes Backend — SMTP Email Sender
==================================

What:  Delivers OTP emails through an SMTP relay (Gmail by default).
How:   Builds a multipart (text + HTML) message with the standard library's
       email package and submits it with smtplib in a worker thread, so the
       blocking network exchange never stalls the event loop.
Who:   Instantiated once at import; called by OTPService for each send-otp.

Failure model:
    A single attempt per request. Any SMTP or socket error becomes
    DeliveryError (HTTP 500); the client decides whether to retry.
"""

import asyncio
import logging
import smtplib
import time
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from app.config import Settings, settings
from app.exceptions import DeliveryError
from app.services.email_base import EmailSender

logger = logging.getLogger(__name__)


class SMTPEmailSender(EmailSender):
    """
    SMTP implementation of EmailSender.

    Configuration (from settings):
        smtp_host / smtp_port:         relay address (smtp.gmail.com:587)
        smtp_username / smtp_password: login; username is also the From address
        smtp_use_tls:                  issue STARTTLS before login
        smtp_timeout:                  socket timeout in seconds
        email_from_name:               display name in the From header
    """

    SUBJECT = "Your OTP for Notes App - Secure Login"

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or settings

    async def send_otp(self, email: str, code: str) -> None:
        message = self.build_message(email, code)
        start_time = time.perf_counter()
        try:
            await asyncio.to_thread(self._submit, message)
        except (smtplib.SMTPException, OSError) as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "OTP email to %s failed after %.0fms: %s",
                email,
                duration_ms,
                type(e).__name__,
            )
            raise DeliveryError(
                context={"error_type": type(e).__name__, "smtp_host": self.config.smtp_host},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info("OTP email sent to %s in %.0fms", email, duration_ms)

    def build_message(self, email: str, code: str) -> EmailMessage:
        """Compose the OTP message; plain text first, HTML alternative second."""
        ttl = self.config.otp_ttl_minutes
        message = EmailMessage()
        message["Subject"] = self.SUBJECT
        message["From"] = formataddr((self.config.email_from_name, self.config.smtp_username))
        message["To"] = email
        message.set_content(
            f"Your OTP for {self.config.email_from_name} is: {code}. "
            f"It expires in {ttl} minutes. Please do not share this code with anyone."
        )
        message.add_alternative(
            f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="text-align: center;">Welcome to {self.config.email_from_name}</h2>
  <p>Your One-Time Password (OTP) for secure login is:</p>
  <p style="text-align: center; font-size: 32px; font-weight: bold; letter-spacing: 5px;">{code}</p>
  <p>This OTP will expire in <strong>{ttl} minutes</strong>.<br>
  Please do not share this code with anyone.</p>
  <p style="font-size: 12px; color: #999;">If you didn't request this OTP, please ignore this email.</p>
</div>
""",
            subtype="html",
        )
        return message

    def _submit(self, message: EmailMessage) -> None:
        """Blocking SMTP exchange; runs in a worker thread."""
        with smtplib.SMTP(
            self.config.smtp_host,
            self.config.smtp_port,
            timeout=self.config.smtp_timeout,
        ) as smtp:
            if self.config.smtp_use_tls:
                smtp.starttls()
            if self.config.smtp_username:
                smtp.login(self.config.smtp_username, self.config.smtp_password)
            smtp.send_message(message)


# ── Singleton Instance ────────────────────────────────────────────────────
email_sender = SMTPEmailSender()
