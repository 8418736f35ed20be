from __future__ import annotations

from fastapi import APIRouter

from sjoelguard.core.rate_limit import get_rate_limiter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Also reports how many counters the process-wide limiter currently holds,
    which is useful when tuning the sweep threshold.
    """

    return {"status": "ok", "tracked_keys": len(get_rate_limiter())}
