"""In-memory LRU counter store with per-entry TTL.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a re-entrant lock guards all shared state, and ``increment``
  runs its read-modify-write under a single acquisition.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractCounterStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
DEFAULT_TTL_MS = 60_000


@dataclass
class _CounterEntry:
    count: int
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Fixed-capacity counter store with LRU eviction and lazy TTL expiry.

    Recency is updated by both ``get`` and ``set``; the TTL only by ``set``.
    An expired entry is never returned: it is dropped when looked up and
    purged in bulk on every write.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker keeps its own
        independent counters.
    """

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the store.

        Args:
            max_entries: Maximum number of distinct keys kept at once.
            ttl_ms: Time-to-live of an entry after its last write, in milliseconds.
            clock: Time source returning seconds (monotonic by default).

        Raises:
            ValueError: If max_entries or ttl_ms are invalid.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if ttl_ms < 1:
            raise ValueError("ttl_ms must be >= 1")

        self._max_entries = max_entries
        self._ttl_seconds = ttl_ms / 1000.0
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: OrderedDict[str, _CounterEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryCounterStore(max_entries={self._max_entries}, ttl_ms={self._ttl_ms}, "
            f"size={len(self._entries)}, evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired_locked()
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and not self._is_expired(entry)

    def get(self, key: str) -> int | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._is_expired(entry):
                self._drop(key)
                self._misses += 1
                logger.debug("counter_store.expired", extra={"size": len(self._entries)})
                return None

            self._hits += 1
            self._entries.move_to_end(key)  # mark as recently used
            return entry.count

    def set(self, key: str, value: int) -> None:
        with self._lock:
            self._purge_expired_locked()
            self._entries[key] = _CounterEntry(count=value, expires_at=self._clock() + self._ttl_seconds)
            self._entries.move_to_end(key)
            self._evict_over_capacity_locked()

    def increment(self, key: str) -> int:
        with self._lock:
            count = self.get(key)
            if count is None:
                count = 0
                self.set(key, count)
            count += 1
            self.set(key, count)
            return count

    def clear(self) -> None:
        """Remove all entries and reset counters."""

        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | float | None]:
        with self._lock:
            return {
                "max_entries": self._max_entries,
                "ttl_ms": self._ttl_ms,
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _drop(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            self._evictions += 1

    def _purge_expired_locked(self) -> None:
        now = self._clock()
        expired = [k for k, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            self._drop(key)

    def _evict_over_capacity_locked(self) -> None:
        while len(self._entries) > self._max_entries:
            # popitem(last=False) removes the least recently used entry
            self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(
                "counter_store.lru_evicted",
                extra={"size": len(self._entries), "max_entries": self._max_entries},
            )

    def _is_expired(self, entry: _CounterEntry) -> bool:
        return self._clock() >= entry.expires_at
