"""Rate limiting wiring for the HTTP layer.

This module owns the process-wide limiter instance and turns a denied check
into a ``RateLimitExceededError`` that the exception handlers render as 429.

Rate limiting strategy:
- One fixed-window counter per ``category:action:identifier`` key.
- Policies come from the static registry; only store maintenance is configurable.
- Disabled (every attempt admitted, nothing counted) via APP_RATE_LIMIT_ENABLED.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum

from sjoelguard.adapters.rate_limit.base import AbstractRateLimiter
from sjoelguard.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from sjoelguard.core.config import settings
from sjoelguard.core.errors import RateLimitExceededError
from sjoelguard.core.logging import hash_for_logging
from sjoelguard.services.policies import RateLimitCategory, get_policy
from sjoelguard.services.rate_limit_service import RateLimitService, build_key, format_retry_message

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: int | None = None
_limiter_lock = threading.Lock()


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of an admitted attempt, as reported to HTTP callers.

    ``reset_at`` is UNIX epoch seconds, converted from the limiter clock.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve counters across requests.
    If the sweep threshold setting changes (primarily in tests), the limiter
    is rebuilt. Sync dependencies run in a threadpool, so creation is
    double-checked under a lock: concurrent first requests share one instance.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    threshold = settings.app.rate_limit_sweep_threshold
    limiter = _limiter
    if limiter is not None and _limiter_config == threshold:
        return limiter

    with _limiter_lock:
        if _limiter is None or _limiter_config != threshold:
            _limiter = InMemoryFixedWindowRateLimiter(sweep_threshold=threshold)
            _limiter_config = threshold
        return _limiter


def reset_rate_limiter() -> None:
    """Discard the process-wide limiter and all of its counters."""

    global _limiter, _limiter_config
    with _limiter_lock:
        _limiter = None
        _limiter_config = None


def get_rate_limit_service() -> RateLimitService:
    """FastAPI dependency returning a service bound to the shared limiter."""

    return RateLimitService(get_rate_limiter())


def enforce_action(
    service: RateLimitService,
    category: RateLimitCategory | str,
    action: Enum | str,
    identifier: str,
) -> AdmissionDecision:
    """Record an attempt and raise when the policy denies it.

    Args:
        service: Rate limit service (injected).
        category: Policy category.
        action: Policy action within the category.
        identifier: Caller-supplied identity (e-mail, user id).

    Returns:
        AdmissionDecision describing the remaining budget.

    Raises:
        UnknownPolicyError: If category/action is not registered.
        RateLimitExceededError: If the attempt is throttled.
    """

    if not settings.app.rate_limit_enabled:
        policy = get_policy(category, action)
        build_key(category, action, identifier)
        logger.debug("rate_limit.skipped", extra={"reason": "rate_limit_enabled_false"})
        return AdmissionDecision(
            allowed=True,
            limit=policy.max_count,
            remaining=policy.max_count,
            reset_at=int(time.time()) + policy.window_seconds,
            retry_after_seconds=0,
        )

    outcome = service.attempt(category, action, identifier)
    policy, budget = outcome.policy, outcome.budget
    key_hash = hash_for_logging(outcome.key)
    reset_at = int(time.time()) + budget.retry_after_seconds

    if outcome.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": budget.limit,
                "remaining": budget.remaining,
                "window_s": policy.window_seconds,
            },
        )
        return AdmissionDecision(
            allowed=True,
            limit=budget.limit,
            remaining=budget.remaining,
            reset_at=reset_at,
            retry_after_seconds=0,
        )

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": budget.limit,
            "remaining": budget.remaining,
            "window_s": policy.window_seconds,
            "retry_after_s": budget.retry_after_seconds,
        },
    )
    raise RateLimitExceededError(
        code="rate_limited",
        message=format_retry_message(policy, budget.retry_after_seconds),
        details={
            "limit": budget.limit,
            "remaining": budget.remaining,
            "reset_at": reset_at,
            "retry_after": budget.retry_after_seconds,
        },
    )
