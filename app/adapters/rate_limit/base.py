"""Rate limiting interfaces.

The limiter depends on this abstraction (not the concrete implementation)
so the per-process store can later be swapped for a shared one (e.g. Redis)
with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
    """

    allowed: bool
    limit: int
    remaining: int

    def headers(self) -> dict[str, str]:
        """Informational headers sent with every response after a check."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }


class AbstractCounterStore(ABC):
    """Capacity- and time-bounded key -> request count store."""

    @abstractmethod
    def get(self, key: str) -> int | None:
        """Return the live count for ``key`` or None if absent/expired."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: int) -> None:
        """Store ``value`` for ``key``, refreshing its recency and TTL."""
        raise NotImplementedError

    @abstractmethod
    def increment(self, key: str) -> int:
        """Atomically add one to the count for ``key`` and return the new count.

        An absent key starts from 0, so the first call returns 1.
        """
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """Drop every tracked key."""
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int | float | None]:
        """Lightweight metrics, never keys or values."""
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError
