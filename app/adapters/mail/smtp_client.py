"""SMTP mail client adapter."""

from __future__ import annotations

import logging
from email.mime.text import MIMEText

import aiosmtplib

from app.adapters.mail.base import AbstractMailClient
from app.core.errors import MailAppError
from app.core.logging import hash_identifier
from app.schemas.mail import MailResult

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "[Contact] "


class SMTPMailClient(AbstractMailClient):
    """Delivers submissions to a fixed inbox over SMTP (async).

    The visitor's address goes into ``Reply-To``; the envelope sender stays
    the site's own address so the message is not rejected as spoofed.
    """

    def __init__(
        self,
        *,
        hostname: str,
        port: int,
        from_email: str,
        to_email: str,
        username: str | None = None,
        password: str | None = None,
        start_tls: bool = True,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.hostname = hostname
        self.port = port
        self.from_email = from_email
        self.to_email = to_email
        self.username = username
        self.password = password
        self.start_tls = start_tls
        self.timeout_seconds = timeout_seconds

    def build_message(self, name: str, email: str, subject: str, message: str) -> MIMEText:
        body = f"From: {name} <{email}>\n\n{message}\n"
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = f"{SUBJECT_PREFIX}{' '.join(subject.split())}"
        msg["From"] = self.from_email
        msg["To"] = self.to_email
        msg["Reply-To"] = email
        return msg

    async def send(self, name: str, email: str, subject: str, message: str) -> MailResult:
        msg = self.build_message(name, email, subject, message)
        sender_hash = hash_identifier(email.lower())

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.start_tls,
                timeout=self.timeout_seconds,
            )
        except aiosmtplib.SMTPException as exc:
            logger.error(
                "mail.delivery_failed",
                extra={"sender_hash": sender_hash, "error_type": type(exc).__name__},
            )
            raise MailAppError(
                code="mail_delivery_failed",
                message="Failed to send email",
                details={"http_status": 500, "error_type": type(exc).__name__},
            ) from exc

        logger.info("mail.sent", extra={"sender_hash": sender_hash, "transport": "smtp"})
        return {"status": 200, "message": "Email sent successfully"}
