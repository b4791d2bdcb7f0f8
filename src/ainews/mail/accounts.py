"""Account emails: address verification and password reset."""

from __future__ import annotations

import asyncio
from html import escape
from urllib.parse import quote

from ainews.mail.templates import TemplateCache
from ainews.mail.transport import SMTPTransport


class AccountMailer:
    def __init__(
        self,
        transport: SMTPTransport,
        templates: TemplateCache,
        app_url: str = "http://localhost:3000",
    ) -> None:
        self.transport = transport
        self.templates = templates
        self.app_url = app_url.rstrip("/")

    async def send_verification_email(
        self, email: str, token: str, display_name: str | None = None
    ) -> None:
        html = self.templates.render(
            "verify",
            DISPLAY_NAME=escape(display_name or email),
            VERIFY_URL=f"{self.app_url}/verify-email?token={quote(token)}",
            APP_URL=self.app_url,
        )
        await asyncio.to_thread(
            self.transport.send, email, "Verify your Your AI News account", html
        )

    async def send_password_reset_email(
        self, email: str, token: str, display_name: str | None = None
    ) -> None:
        html = self.templates.render(
            "reset_password",
            DISPLAY_NAME=escape(display_name or email),
            RESET_URL=f"{self.app_url}/reset-password?token={quote(token)}",
            APP_URL=self.app_url,
        )
        await asyncio.to_thread(
            self.transport.send, email, "Reset your Your AI News password", html
        )
