"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory counter store and later migrate to Redis or another shared
store without changing the limiter or the API layer.
"""

from app.adapters.rate_limit.base import AbstractCounterStore, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RateLimitResult",
]
