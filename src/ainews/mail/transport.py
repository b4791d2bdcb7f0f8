"""SMTP submission for outbound mail."""

from __future__ import annotations

import logging
import smtplib
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 30


class SMTPTransport:
    """Authenticated STARTTLS submission. ``send`` blocks; async callers
    run it with ``asyncio.to_thread``."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str = "",
        password: str = "",
        from_email: str = "noreply@example.com",
        from_name: str = "Your AI News",
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email
        self.from_name = from_name

    @classmethod
    def from_config(cls) -> "SMTPTransport":
        from ainews.config import (
            EMAIL_FROM,
            EMAIL_FROM_NAME,
            SMTP_HOST,
            SMTP_PASSWORD,
            SMTP_PORT,
            SMTP_USER,
        )

        return cls(
            SMTP_HOST,
            SMTP_PORT,
            user=SMTP_USER,
            password=SMTP_PASSWORD,
            from_email=EMAIL_FROM,
            from_name=EMAIL_FROM_NAME,
        )

    @property
    def sender(self) -> str:
        return formataddr((self.from_name, self.from_email))

    def build_message(self, to: str, subject: str, html: str) -> MIMEText:
        message = MIMEText(html, "html", "utf-8")
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to
        message["Date"] = formatdate(localtime=True)
        message["Message-ID"] = make_msgid(domain=self.from_email.rpartition("@")[2] or None)
        return message

    def verify(self) -> None:
        """Open and authenticate a connection without sending anything."""
        with self._connect():
            pass

    def send(self, to: str, subject: str, html: str) -> None:
        """Send one HTML message. Raises smtplib.SMTPException / OSError."""
        message = self.build_message(to, subject, html)
        with self._connect() as smtp:
            smtp.send_message(message)
        logger.debug("Sent %r to %s", subject, to)

    def _connect(self) -> smtplib.SMTP:
        smtp = smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT)
        try:
            smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
        except Exception:
            smtp.close()
            raise
        return smtp
