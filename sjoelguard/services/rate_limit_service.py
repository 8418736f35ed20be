"""Admission control for auth flows and game mutations.

Composes policy lookup, key construction and the limiter. Keys are
namespaced as ``<category>:<action>:<identifier>``, for example
``auth:sign-in:alice@example.com`` or ``games:create:user-42``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from sjoelguard.adapters.rate_limit.base import AbstractRateLimiter, RemainingAttempts
from sjoelguard.core.errors import ValidationAppError
from sjoelguard.core.logging import hash_for_logging
from sjoelguard.services.policies import (
    AuthAction,
    GameAction,
    Policy,
    RateLimitCategory,
    get_policy,
    resolve_action,
    resolve_category,
)

logger = logging.getLogger(__name__)


def build_key(category: RateLimitCategory | str, action: Enum | str, identifier: str) -> str:
    """Build the namespaced limiter key for an identifier.

    Raises:
        UnknownPolicyError: If category/action is not registered.
        ValidationAppError: If identifier is empty.
    """
    if not identifier or not identifier.strip():
        raise ValidationAppError(
            code="empty_identifier",
            message="A non-empty identifier is required for rate limiting",
        )
    resolved_category = resolve_category(category)
    resolved_action = resolve_action(resolved_category, action)
    return f"{resolved_category.value}:{resolved_action.value}:{identifier}"


def format_retry_message(policy: Policy, retry_after_seconds: int) -> str:
    """User-facing throttle text, e.g. "Too many ..., please slow down (retry in 1 minute)."."""
    minutes = max(1, math.ceil(retry_after_seconds / 60))
    unit = "minute" if minutes == 1 else "minutes"
    return f"{policy.message} (retry in {minutes} {unit})."


@dataclass(frozen=True)
class AttemptOutcome:
    allowed: bool
    key: str
    policy: Policy
    budget: RemainingAttempts


class RateLimitService:
    """Thin facade over a limiter for the registered policies.

    Attributes:
        limiter: Backend doing the counting; shared by all callers.
    """

    def __init__(self, limiter: AbstractRateLimiter) -> None:
        self.limiter = limiter

    def attempt(
        self,
        category: RateLimitCategory | str,
        action: Enum | str,
        identifier: str,
    ) -> AttemptOutcome:
        """Record an attempt and return the decision with the budget after it.

        The policy and key are resolved once; the decision and the budget
        come from the same critical section of the limiter.
        """
        policy = get_policy(category, action)
        key = build_key(category, action, identifier)
        allowed, budget = self.limiter.check_and_report(key, policy)
        if not allowed:
            logger.debug(
                "rate_limit.denied",
                extra={"key_hash": hash_for_logging(key), "max_count": policy.max_count},
            )
        return AttemptOutcome(allowed=allowed, key=key, policy=policy, budget=budget)

    def check(self, category: RateLimitCategory | str, action: Enum | str, identifier: str) -> bool:
        """Record an attempt for ``identifier`` under the named policy."""
        return self.attempt(category, action, identifier).allowed

    def check_auth_limit(self, action: AuthAction | str, identifier: str) -> bool:
        return self.check(RateLimitCategory.AUTH, action, identifier)

    def check_game_limit(self, action: GameAction | str, user_id: str) -> bool:
        return self.check(RateLimitCategory.GAMES, action, user_id)

    def get_remaining_attempts(self, key: str, policy: Policy) -> RemainingAttempts:
        return self.limiter.get_remaining_attempts(key, policy)

    def remaining_for(
        self,
        category: RateLimitCategory | str,
        action: Enum | str,
        identifier: str,
    ) -> RemainingAttempts:
        """Budget left for ``identifier``; does not count as an attempt."""
        policy = get_policy(category, action)
        return self.limiter.get_remaining_attempts(build_key(category, action, identifier), policy)

    def reset(self, key: str) -> None:
        self.limiter.reset(key)

    def reset_for(self, category: RateLimitCategory | str, action: Enum | str, identifier: str) -> None:
        """Clear throttling for one identifier, e.g. after an admin override."""
        get_policy(category, action)
        key = build_key(category, action, identifier)
        self.limiter.reset(key)
        logger.info("rate_limit.reset", extra={"key_hash": hash_for_logging(key)})

    def throttle_message(
        self,
        category: RateLimitCategory | str,
        action: Enum | str,
        retry_after_seconds: int,
    ) -> str:
        return format_retry_message(get_policy(category, action), retry_after_seconds)
