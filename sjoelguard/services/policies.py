"""Rate limit policy registry.

Every throttled operation is identified by a category and an action, both
fixed enumerations so a typo fails loudly instead of silently disabling a
limit. Policies are defined once at import time and never change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from sjoelguard.core.errors import UnknownPolicyError

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 60 * MINUTE


class RateLimitCategory(str, Enum):
    AUTH = "auth"
    GAMES = "games"


class AuthAction(str, Enum):
    SIGN_IN = "sign-in"
    SIGN_UP = "sign-up"
    PASSWORD_RESET = "password-reset"


class GameAction(str, Enum):
    CREATE = "create"
    SCORE_SUBMIT = "score-submit"


ACTIONS_BY_CATEGORY: Mapping[RateLimitCategory, type[Enum]] = MappingProxyType(
    {
        RateLimitCategory.AUTH: AuthAction,
        RateLimitCategory.GAMES: GameAction,
    }
)


@dataclass(frozen=True)
class Policy:
    """Limit for one named action.

    Attributes:
        window_seconds: Length of a fixed window.
        max_count: Actions permitted per identifier within one window.
        message: User-facing text shown when the limit is hit.
    """

    window_seconds: int
    max_count: int
    message: str = "Too many requests, please try again later"

    def __post_init__(self) -> None:
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if self.max_count < 1:
            raise ValueError("max_count must be >= 1")


_POLICIES: Mapping[tuple[RateLimitCategory, str], Policy] = MappingProxyType(
    {
        (RateLimitCategory.AUTH, AuthAction.SIGN_IN.value): Policy(
            window_seconds=15 * MINUTE,
            max_count=5,
            message="Too many login attempts, please try again later",
        ),
        (RateLimitCategory.AUTH, AuthAction.SIGN_UP.value): Policy(
            window_seconds=HOUR,
            max_count=3,
            message="Too many accounts created from this IP, please try again later",
        ),
        (RateLimitCategory.AUTH, AuthAction.PASSWORD_RESET.value): Policy(
            window_seconds=HOUR,
            max_count=3,
            message="Too many password reset attempts, please try again later",
        ),
        (RateLimitCategory.GAMES, GameAction.CREATE.value): Policy(
            window_seconds=HOUR,
            max_count=10,
            message="Too many games created, please try again later",
        ),
        (RateLimitCategory.GAMES, GameAction.SCORE_SUBMIT.value): Policy(
            window_seconds=MINUTE,
            max_count=30,
            message="Too many score submissions, please slow down",
        ),
    }
)


def _unknown(category: object, action: object) -> UnknownPolicyError:
    return UnknownPolicyError(
        code="unknown_policy",
        message=f"No rate limit policy registered for {category}:{action}",
        details={"category": str(category), "action": str(action)},
    )


def resolve_category(category: RateLimitCategory | str) -> RateLimitCategory:
    """Coerce a category name into the enum.

    Raises:
        UnknownPolicyError: If the category is not registered.
    """
    try:
        return RateLimitCategory(category)
    except ValueError as exc:
        raise _unknown(category, "*") from exc


def resolve_action(category: RateLimitCategory | str, action: Enum | str) -> Enum:
    """Coerce an action name into the enum of its category.

    An action belonging to another category (``auth`` + ``create``) is
    rejected just like an unknown name.

    Raises:
        UnknownPolicyError: If the action is not registered for the category.
    """
    resolved_category = resolve_category(category)
    action_enum = ACTIONS_BY_CATEGORY[resolved_category]
    if isinstance(action, Enum) and not isinstance(action, action_enum):
        raise _unknown(resolved_category.value, action.value)
    try:
        return action_enum(action)
    except ValueError as exc:
        raise _unknown(resolved_category.value, action) from exc


def get_policy(category: RateLimitCategory | str, action: Enum | str) -> Policy:
    """Look up the policy for a category/action pair.

    Args:
        category: Category enum member or its value (``"auth"``).
        action: Action enum member or its value (``"sign-in"``).

    Returns:
        The registered Policy.

    Raises:
        UnknownPolicyError: If the pair is not registered.
    """
    resolved_category = resolve_category(category)
    resolved_action = resolve_action(resolved_category, action)
    policy = _POLICIES.get((resolved_category, resolved_action.value))
    if policy is None:
        raise _unknown(resolved_category.value, resolved_action.value)
    return policy


def list_policies() -> list[tuple[RateLimitCategory, str, Policy]]:
    """Return every registered policy as (category, action, policy) tuples."""
    return [(category, action, policy) for (category, action), policy in _POLICIES.items()]


def validate_policy_registry(
    policies: Mapping[tuple[RateLimitCategory, str], Policy] | None = None,
) -> None:
    """Ensure every declared action has a policy.

    Intended to run once at startup so a missing entry stops the process
    instead of surfacing per request.

    Args:
        policies: Registry to check; defaults to the built-in table.

    Raises:
        UnknownPolicyError: If any enum action lacks a policy.
    """
    registry = _POLICIES if policies is None else policies
    missing = [
        f"{category.value}:{action.value}"
        for category, action_enum in ACTIONS_BY_CATEGORY.items()
        for action in action_enum
        if (category, action.value) not in registry
    ]
    if missing:
        logger.critical(
            "rate_limit.policy_registry_incomplete",
            extra={"missing_policies": missing},
        )
        raise UnknownPolicyError(
            code="policy_registry_incomplete",
            message=f"Missing rate limit policies: {', '.join(missing)}",
        )
    logger.debug("rate_limit.policy_registry_ok", extra={"policy_count": len(registry)})
