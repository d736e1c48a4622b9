from abc import ABC, abstractmethod

from app.schemas.mail import MailResult


class AbstractMailClient(ABC):
    """Interface for delivering contact form submissions."""

    @abstractmethod
    async def send(self, name: str, email: str, subject: str, message: str) -> MailResult:
        """Deliver a contact submission.

        Args:
            name: Visitor's name.
            email: Visitor's address (used as Reply-To).
            subject: Subject line entered by the visitor.
            message: Message body.

        Returns:
            MailResult with an HTTP-style ``status`` and a human message.

        Raises:
            MailAppError: If delivery fails.
        """
        ...
