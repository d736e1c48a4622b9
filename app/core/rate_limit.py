"""Rate limiting wiring for FastAPI routes.

The limiter is built once per application (see ``app_factory.create_app``)
and kept on ``app.state``; routes receive it through ``get_rate_limiter``.
This keeps state lifetime explicit and lets tests inject their own limiter.
"""

from __future__ import annotations

import logging

from fastapi import Request

from app.core.config import settings
from app.core.errors import RateLimitAppError
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def build_rate_limiter() -> RateLimiter:
    """Create the process-wide limiter from settings."""

    return RateLimiter.in_memory(
        max_entries=settings.app.rate_limit_max_identities,
        interval_ms=settings.app.rate_limit_interval_ms,
    )


def get_rate_limiter(request: Request) -> RateLimiter:
    """FastAPI dependency returning the application's limiter."""

    return request.app.state.rate_limiter


def apply_rate_limit(request: Request, limiter: RateLimiter) -> dict[str, str]:
    """Count the request and raise when the caller is over its limit.

    Args:
        request: Incoming request.
        limiter: Application limiter.

    Returns:
        X-RateLimit-* headers to attach to the eventual response
        (empty when rate limiting is disabled).

    Raises:
        RateLimitAppError: 429 when the window is used up.
        IdentityMissingAppError: 400 when no identity could be resolved.
        RateLimitInternalAppError: 500 on limiter faults.
    """

    if not settings.app.rate_limit_enabled:
        return {}

    result = limiter.check(request, settings.app.rate_limit_requests)
    headers = result.headers()
    if result.allowed:
        return headers

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message="Rate limit exceeded",
        details={"limit": result.limit, "remaining": result.remaining},
        headers=headers,
    )
