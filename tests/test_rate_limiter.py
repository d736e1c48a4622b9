"""Unit tests for the identity-keyed rate limiter."""

from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.base import RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.core.errors import IdentityMissingAppError, RateLimitInternalAppError
from app.services.identity import IdentityResolver, RequestIdentityResolver
from app.services.rate_limiter import RateLimiter


class FixedIdentityResolver(IdentityResolver):
    def __init__(self, identity: str) -> None:
        self.identity = identity

    def resolve(self, request) -> str:
        return self.identity


class FailingResolver(IdentityResolver):
    def resolve(self, request) -> str:
        raise RuntimeError("resolver exploded")


def _limiter(**store_kwargs) -> RateLimiter:
    return RateLimiter(
        store=InMemoryCounterStore(**store_kwargs),
        resolver=RequestIdentityResolver(),
    )


AGENT_X = {"X-Forwarded-For": "1.2.3.4", "User-Agent": "AgentX"}


def test_requests_below_limit_are_allowed_with_decreasing_remaining(make_request) -> None:
    limiter = _limiter()

    remaining = [limiter.check(make_request(AGENT_X), 5).remaining for _ in range(4)]

    assert remaining == [4, 3, 2, 1]


def test_request_reaching_limit_is_denied(make_request) -> None:
    limiter = _limiter()
    for _ in range(4):
        assert limiter.check(make_request(AGENT_X), 5).allowed is True

    result = limiter.check(make_request(AGENT_X), 5)

    assert result == RateLimitResult(allowed=False, limit=5, remaining=0)


def test_denied_requests_keep_counting(make_request) -> None:
    limiter = _limiter()
    for _ in range(7):
        limiter.check(make_request(AGENT_X), 5)

    assert limiter.store.get("user:1.2.3.4-AgentX") == 7


def test_limit_of_one_denies_first_request(make_request) -> None:
    result = _limiter().check(make_request(AGENT_X), 1)

    assert result.allowed is False
    assert result.remaining == 0


def test_counts_are_stored_under_user_prefix(make_request) -> None:
    limiter = _limiter()
    limiter.check(make_request(AGENT_X), 5)

    assert limiter.store.get("user:1.2.3.4-AgentX") == 1


def test_user_agents_are_tracked_independently(make_request) -> None:
    limiter = _limiter()
    agent_y = {"X-Forwarded-For": "1.2.3.4", "User-Agent": "AgentY"}

    for _ in range(5):
        limiter.check(make_request(AGENT_X), 5)

    result = limiter.check(make_request(agent_y), 5)
    assert result.allowed is True
    assert result.remaining == 4


def test_count_resets_after_interval(make_request) -> None:
    clock = Mock(return_value=1000.0)
    limiter = _limiter(ttl_ms=3_600_000, clock=clock)
    for _ in range(5):
        limiter.check(make_request(AGENT_X), 5)

    clock.return_value = 1000.0 + 3600
    result = limiter.check(make_request(AGENT_X), 5)

    assert result.allowed is True
    assert result.remaining == 4


def test_lru_capacity_evicts_oldest_identity(make_request) -> None:
    limiter = _limiter(max_entries=2)
    first = {"X-Forwarded-For": "10.0.0.1", "User-Agent": "A"}
    second = {"X-Forwarded-For": "10.0.0.2", "User-Agent": "A"}
    third = {"X-Forwarded-For": "10.0.0.3", "User-Agent": "A"}

    limiter.check(make_request(first), 5)
    limiter.check(make_request(second), 5)
    limiter.check(make_request(first), 5)
    limiter.check(make_request(third), 5)

    assert limiter.store.get("user:10.0.0.2-A") is None
    assert limiter.store.get("user:10.0.0.1-A") == 2
    assert limiter.store.get("user:10.0.0.3-A") == 1


def test_result_headers() -> None:
    result = RateLimitResult(allowed=True, limit=5, remaining=3)

    assert result.headers() == {"X-RateLimit-Limit": "5", "X-RateLimit-Remaining": "3"}


def test_empty_identity_raises_identity_missing(make_request) -> None:
    limiter = RateLimiter(store=InMemoryCounterStore(), resolver=FixedIdentityResolver(""))

    with pytest.raises(IdentityMissingAppError) as exc_info:
        limiter.check(make_request(), 5)

    assert exc_info.value.message == "Token missing"
    assert len(limiter.store) == 0


def test_resolver_failure_raises_internal_error(make_request) -> None:
    limiter = RateLimiter(store=InMemoryCounterStore(), resolver=FailingResolver())

    with pytest.raises(RateLimitInternalAppError) as exc_info:
        limiter.check(make_request(), 5)

    assert exc_info.value.details["error_type"] == "RuntimeError"


def test_store_failure_raises_internal_error(make_request) -> None:
    store = Mock(spec=InMemoryCounterStore)
    store.increment.side_effect = KeyError("corrupted")
    limiter = RateLimiter(store=store, resolver=FixedIdentityResolver("someone"))

    with pytest.raises(RateLimitInternalAppError):
        limiter.check(make_request(), 5)


def test_invalid_limit_is_rejected(make_request) -> None:
    with pytest.raises(ValueError):
        _limiter().check(make_request(AGENT_X), 0)


def test_in_memory_constructor_uses_given_bounds() -> None:
    limiter = RateLimiter.in_memory(max_entries=100, interval_ms=3_600_000)

    stats = limiter.store.stats()
    assert stats["max_entries"] == 100
    assert stats["ttl_ms"] == 3_600_000
    assert isinstance(limiter.resolver, RequestIdentityResolver)
