"""Per-visitor request limiter for the contact mail endpoint.

Counts requests per resolved identity in a bounded counter store. The
request that brings a visitor's count up to the limit is itself denied, so
with a limit of 5 only four requests pass per window.

A denial is a regular return value. Exceptions are reserved for the cases
the HTTP layer must tell apart from a denial:
- ``IdentityMissingAppError`` when no identity can be derived (400)
- ``RateLimitInternalAppError`` for any unexpected resolver/store fault (500)
"""

from __future__ import annotations

import logging

from starlette.requests import Request

from app.adapters.rate_limit.base import AbstractCounterStore, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.core.errors import IdentityMissingAppError, RateLimitInternalAppError
from app.core.logging import hash_identifier
from app.services.identity import IdentityResolver, RequestIdentityResolver

logger = logging.getLogger(__name__)

KEY_PREFIX = "user:"


class RateLimiter:
    """Identity-keyed request limiter.

    Attributes:
        store: Counter store holding one count per identity.
        resolver: Strategy deriving the identity from a request.
    """

    def __init__(self, store: AbstractCounterStore, resolver: IdentityResolver) -> None:
        self.store = store
        self.resolver = resolver

    @classmethod
    def in_memory(
        cls,
        *,
        max_entries: int,
        interval_ms: int,
        resolver: IdentityResolver | None = None,
    ) -> "RateLimiter":
        """Build a limiter backed by a fresh per-process store."""
        return cls(
            store=InMemoryCounterStore(max_entries=max_entries, ttl_ms=interval_ms),
            resolver=resolver or RequestIdentityResolver(),
        )

    def check(self, request: Request, limit_per_window: int) -> RateLimitResult:
        """Count this request against the caller's window and decide.

        Args:
            request: Incoming HTTP request.
            limit_per_window: Requests per window; reaching it denies.

        Returns:
            RateLimitResult with the decision and header values.

        Raises:
            ValueError: If limit_per_window is below 1.
            IdentityMissingAppError: If no identity could be resolved.
            RateLimitInternalAppError: If the resolver or store fails.
        """
        if limit_per_window < 1:
            raise ValueError("limit_per_window must be >= 1")

        try:
            identity = self.resolver.resolve(request)
        except Exception as exc:
            logger.exception("rate_limit.resolver_failed")
            raise RateLimitInternalAppError(
                code="rate_limit_internal_error",
                message="Internal server error",
                details={"error_type": type(exc).__name__},
            ) from exc

        if not identity:
            logger.warning("rate_limit.identity_missing")
            raise IdentityMissingAppError(
                code="token_missing",
                message="Token missing",
            )

        key = f"{KEY_PREFIX}{identity}"
        key_hash = hash_identifier(key)

        try:
            count = self.store.increment(key)
        except Exception as exc:
            logger.exception("rate_limit.store_failed", extra={"key_hash": key_hash})
            raise RateLimitInternalAppError(
                code="rate_limit_internal_error",
                message="Internal server error",
                details={"key_hash": key_hash, "error_type": type(exc).__name__},
            ) from exc

        allowed = count < limit_per_window
        result = RateLimitResult(
            allowed=allowed,
            limit=limit_per_window,
            remaining=limit_per_window - count if allowed else 0,
        )

        if allowed:
            logger.info(
                "rate_limit.allowed",
                extra={"key_hash": key_hash, "limit": result.limit, "remaining": result.remaining},
            )
        else:
            logger.warning(
                "rate_limit.exceeded",
                extra={"key_hash": key_hash, "limit": result.limit, "count": count},
            )
        return result
