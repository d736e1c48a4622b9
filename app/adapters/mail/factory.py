"""Factory for creating the configured mail client."""

import logging

from app.adapters.mail.base import AbstractMailClient
from app.adapters.mail.console_client import ConsoleMailClient
from app.adapters.mail.smtp_client import SMTPMailClient
from app.core.config import settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_mail_client() -> AbstractMailClient:
    """Instantiate the mail client selected by ``MAIL_*`` settings.

    Without ``MAIL_SMTP_HOST`` submissions are only logged.

    Returns:
        AbstractMailClient: Configured mail client instance.

    Raises:
        ValidationAppError: If SMTP is configured without a recipient.
    """
    mail = settings.mail

    if not mail.smtp_host:
        logger.info("mail.client_selected", extra={"transport": "console"})
        return ConsoleMailClient()

    if not mail.to_email:
        raise ValidationAppError(
            code="mail_missing_recipient",
            message="SMTP delivery requires MAIL_TO_EMAIL",
            details={"hint": "Set MAIL_TO_EMAIL or unset MAIL_SMTP_HOST to log messages instead"},
        )

    logger.info("mail.client_selected", extra={"transport": "smtp", "smtp_port": mail.smtp_port})
    return SMTPMailClient(
        hostname=mail.smtp_host,
        port=mail.smtp_port,
        from_email=mail.from_email,
        to_email=mail.to_email,
        username=mail.smtp_username,
        password=mail.smtp_password,
        start_tls=mail.smtp_use_tls,
        timeout_seconds=mail.timeout_seconds,
    )
