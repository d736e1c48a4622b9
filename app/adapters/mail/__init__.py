"""Mail adapter layer - abstracts over how contact submissions are delivered."""

from app.adapters.mail.base import AbstractMailClient
from app.adapters.mail.console_client import ConsoleMailClient
from app.adapters.mail.factory import create_mail_client
from app.adapters.mail.smtp_client import SMTPMailClient

__all__ = [
    "AbstractMailClient",
    "ConsoleMailClient",
    "SMTPMailClient",
    "create_mail_client",
]
