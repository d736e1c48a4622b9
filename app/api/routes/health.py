from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.rate_limit import get_rate_limiter
from app.services.rate_limiter import RateLimiter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(limiter: RateLimiter = Depends(get_rate_limiter)) -> dict:
    """Liveness check with rate limiter store metrics.

    Returns:
        dict: ``status`` plus counter store stats (sizes and counters only).
    """

    return {"status": "ok", "rate_limit": limiter.store.stats()}
