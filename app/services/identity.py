"""Visitor identity for rate limiting.

Resolution order (first match wins):
1. ``X-Forwarded-For`` + ``User-Agent`` headers -> ``"{ip}-{user_agent}"``
2. ``userUuid`` cookie, if ``userUuid_expires`` is present and in the future
3. A freshly generated random token

Known limitations: visitors behind one proxy share an IP, and both headers
and cookies are client-controlled, so a determined caller can always obtain
a fresh bucket. The random fallback sits behind ``IdentityResolver`` so a
stronger scheme can replace it without touching the limiter.
"""

from __future__ import annotations

import logging
import secrets
import string
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Callable

from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings

logger = logging.getLogger(__name__)

USER_ID_COOKIE_NAME = "userUuid"
EXPIRY_COOKIE_NAME = "userUuid_expires"

IDENTITY_TOKEN_LENGTH = 20
_TOKEN_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_identity_token(length: int = IDENTITY_TOKEN_LENGTH) -> str:
    """Return a random URL-safe token (64-symbol alphabet)."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_cookie_expiry(moment: datetime) -> str:
    """Render an absolute expiry as an HTTP-date, e.g. ``Tue, 20 Oct 2026 10:00:00 GMT``."""
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def parse_cookie_expiry(value: str) -> datetime | None:
    """Parse an expiry cookie value; None when it is not a valid HTTP-date.

    Only the RFC 7231 form written by ``format_cookie_expiry`` is accepted.
    Other date formats such as ISO-8601 return None, so the cookie pair is
    treated as expired and the caller falls back to a random identity.
    """
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class IdentityResolver(ABC):
    """Derives the string used to bucket a caller's request count."""

    @abstractmethod
    def resolve(self, request: Request) -> str:
        raise NotImplementedError


class RequestIdentityResolver(IdentityResolver):
    """Header/cookie based resolver with a random-token fallback."""

    def __init__(
        self,
        *,
        token_factory: Callable[[], str] = generate_identity_token,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._token_factory = token_factory
        self._clock = clock

    def resolve(self, request: Request) -> str:
        forwarded_for = (request.headers.get("x-forwarded-for") or "").strip()
        user_agent = (request.headers.get("user-agent") or "").strip()
        if forwarded_for and user_agent:
            return f"{forwarded_for}-{user_agent}"

        user_id = request.cookies.get(USER_ID_COOKIE_NAME)
        expires = request.cookies.get(EXPIRY_COOKIE_NAME)
        if user_id and expires:
            expiry = parse_cookie_expiry(expires)
            if expiry is not None and expiry > self._clock():
                return user_id
            logger.debug("identity.cookie_rejected", extra={"reason": "expired_or_invalid"})

        return self._token_factory()


def issue_identity_cookies(
    response: Response,
    *,
    token_factory: Callable[[], str] = generate_identity_token,
    now: datetime | None = None,
) -> Response:
    """Attach a brand-new ``userUuid`` / ``userUuid_expires`` cookie pair.

    A new token is minted on every call, so each successful submission
    rotates the visitor's stored identity.

    Args:
        response: Outgoing response to decorate.
        token_factory: Source of the identity token.
        now: Issuance time (defaults to the current UTC time).

    Returns:
        The same response, for chaining.
    """
    max_age = settings.app.identity_cookie_max_age_seconds
    issued_at = now or _utcnow()

    response.set_cookie(
        key=USER_ID_COOKIE_NAME,
        value=token_factory(),
        max_age=max_age,
        samesite="strict",
        secure=settings.app.cookie_secure,
    )
    response.set_cookie(
        key=EXPIRY_COOKIE_NAME,
        value=format_cookie_expiry(issued_at + timedelta(seconds=max_age)),
        max_age=max_age,
        samesite="strict",
        secure=settings.app.cookie_secure,
    )
    return response
