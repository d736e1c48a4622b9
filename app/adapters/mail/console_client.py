"""Log-only mail client for development.

Used when no SMTP server is configured: the submission is written to the
application log (personal fields are redacted by the log filters) and
reported as delivered.
"""

from __future__ import annotations

import logging

from app.adapters.mail.base import AbstractMailClient
from app.core.logging import hash_identifier
from app.schemas.mail import MailResult

logger = logging.getLogger(__name__)


class ConsoleMailClient(AbstractMailClient):
    async def send(self, name: str, email: str, subject: str, message: str) -> MailResult:
        logger.info(
            "mail.console_delivery",
            extra={
                "sender_hash": hash_identifier(email.lower()),
                "email": email,
                "subject": subject,
                "message_body": message,
                "message_chars": len(message),
                "transport": "console",
            },
        )
        return {"status": 200, "message": "Email sent successfully"}
