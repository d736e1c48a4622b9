"""Pydantic schemas for the contact mail endpoint.

Field rules (all trimmed, all required):
- name: 3-50 characters
- email: syntactically valid address
- subject: 3-100 characters
- name and subject: single line (no CR/LF)
- message: 10-1000 characters

``validate_mail_request`` reports every failing field at once so the form
can show all problems in a single round trip.
"""

from __future__ import annotations

from typing import Any, TypedDict

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from app.core.errors import ValidationAppError

# field -> (label, min length, max length)
_TEXT_RULES: dict[str, tuple[str, int, int]] = {
    "name": ("Name", 3, 50),
    "subject": ("Subject", 3, 100),
    "message": ("Message", 10, 1000),
}

# single-line fields; subject becomes a mail header
_SINGLE_LINE_FIELDS = frozenset({"name", "subject"})


def _require_text(value: Any, label: str) -> str:
    if value is None:
        raise PydanticCustomError("required", f"{label} is required")
    if not isinstance(value, str):
        raise PydanticCustomError("string_type", f"{label} must be a string")
    value = value.strip()
    if not value:
        raise PydanticCustomError("required", f"{label} is required")
    return value


class MailRequest(BaseModel):
    """Contact form submission."""

    name: str = Field(None, validate_default=True, description="Sender's name")
    email: str = Field(None, validate_default=True, description="Sender's reply-to address")
    subject: str = Field(None, validate_default=True, description="Message subject")
    message: str = Field(None, validate_default=True, description="Message body")

    @field_validator("name", "subject", "message", mode="before")
    @classmethod
    def check_text(cls, value: Any, info: ValidationInfo) -> str:
        label, min_len, max_len = _TEXT_RULES[info.field_name]
        value = _require_text(value, label)
        if len(value) < min_len:
            raise PydanticCustomError("too_short", f"{label} must be at least {min_len} characters")
        if len(value) > max_len:
            raise PydanticCustomError("too_long", f"{label} cannot exceed {max_len} characters")
        if info.field_name in _SINGLE_LINE_FIELDS and ("\r" in value or "\n" in value):
            raise PydanticCustomError("line_break", f"{label} cannot contain line breaks")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, value: Any) -> str:
        value = _require_text(value, "Email")
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("email_format", "Invalid email format") from None
        return value


class MailResult(TypedDict):
    """Outcome reported by a mail client."""

    status: int
    message: str


def validate_mail_request(body: Any) -> MailRequest:
    """Validate a decoded JSON body.

    Args:
        body: Decoded request JSON.

    Returns:
        MailRequest with trimmed fields.

    Raises:
        ValidationAppError: With every field error in ``details["errors"]``.
    """
    if not isinstance(body, dict):
        raise ValidationAppError(
            code="mail_validation_failed",
            message="Invalid mail request",
            details={"errors": ["Request body must be a JSON object"]},
        )

    try:
        return MailRequest.model_validate(body)
    except ValidationError as exc:
        errors = [error["msg"] for error in exc.errors()]
        raise ValidationAppError(
            code="mail_validation_failed",
            message="Invalid mail request",
            details={"errors": errors},
        ) from None
