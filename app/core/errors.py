"""Application-level exception types.

Each error carries a stable code plus optional structured details. The HTTP
mapping (status code and response body) lives in
``app.core.exception_handlers``; nothing here writes to the wire.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    errors: list[str]
    hint: str
    http_status: int
    limit: int
    remaining: int
    key_hash: str
    error_type: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
        headers: Extra response headers (e.g. X-RateLimit-*) to send along.
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    headers: dict[str, str] | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails.

    Field-level messages are collected in ``details["errors"]``.
    """

    @property
    def errors(self) -> list[str]:
        return list((self.details or {}).get("errors", []))


class IdentityMissingAppError(AppError):
    """Raised when no caller identity could be derived for rate limiting."""


class RateLimitAppError(AppError):
    """Raised by the HTTP layer when a caller has used up its window."""


class RateLimitInternalAppError(AppError):
    """Raised when the limiter fails unexpectedly (resolver or store fault)."""


class MailAppError(AppError):
    """Raised when the mail collaborator fails or reports a failure status."""

    @property
    def http_status(self) -> int:
        return int((self.details or {}).get("http_status", 500))
