"""
Account confirmation email.

Sending is detached from the request: ``schedule_welcome`` starts a task and
returns immediately. Any failure inside the task is logged and dropped, never
retried and never reported to the client.
"""
import asyncio
import logging
from email.message import EmailMessage
from typing import Set

import aiosmtplib

from app.core.config import Settings

logger = logging.getLogger(__name__)


def build_welcome_message(settings: Settings, name: str, email: str) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"Welcome to {settings.app_name}"
    msg["From"] = settings.email_from
    msg["To"] = email
    msg.set_content(
        f"Hi {name},\n\n"
        f"Your {settings.app_name} account was created successfully.\n"
        "You can now log in, publish products and register interest in listings.\n"
    )
    return msg


class NotificationService:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._tasks: Set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.smtp_host)

    async def send_welcome(self, name: str, email: str) -> None:
        """Send the confirmation email. Raises on SMTP errors."""
        if not self.enabled:
            logger.info("SMTP not configured, skipping welcome email to %s", email)
            return

        await aiosmtplib.send(
            build_welcome_message(self.settings, name, email),
            hostname=self.settings.smtp_host,
            port=self.settings.smtp_port,
            username=self.settings.smtp_user,
            password=self.settings.smtp_password,
            use_tls=self.settings.smtp_use_tls,
        )
        logger.info("Welcome email sent to %s", email)

    async def _send_welcome_safely(self, name: str, email: str) -> None:
        try:
            await self.send_welcome(name, email)
        except Exception:
            logger.exception("Failed to send welcome email to %s", email)

    def schedule_welcome(self, name: str, email: str) -> asyncio.Task:
        """Fire-and-forget; must be called from a running event loop."""
        task = asyncio.create_task(self._send_welcome_safely(name, email))
        # keep a reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for pending sends (used on shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
