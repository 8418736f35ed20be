"""Rate limiter interfaces.

The service and HTTP layers depend on this abstraction (not the concrete
implementation) so the counting algorithm or its storage can be swapped
without changing callers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from sjoelguard.services.policies import Policy


@dataclass(frozen=True)
class RemainingAttempts:
    """Budget left for a key under a policy.

    Attributes:
        limit: Max actions per window.
        remaining: Actions still permitted in the current window.
        reset_at: Limiter clock reading at which the window ends.
        retry_after_seconds: Whole seconds until ``reset_at`` (rounded up).
    """

    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check_limit(self, key: str, policy: Policy) -> bool:
        """Record an attempt for ``key`` and decide whether it is admitted.

        Args:
            key: Composite key, typically ``category:action:identifier``.
            policy: Policy governing the key.

        Returns:
            True if the action is allowed, False if it is throttled.
        """
        raise NotImplementedError

    @abstractmethod
    def get_remaining_attempts(self, key: str, policy: Policy) -> RemainingAttempts:
        """Report the budget left for ``key`` without consuming any of it."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str) -> None:
        """Forget all attempts recorded for ``key``. Missing keys are ignored."""
        raise NotImplementedError

    def check_and_report(self, key: str, policy: Policy) -> tuple[bool, RemainingAttempts]:
        """Record an attempt and return the decision with the budget left after it.

        This default makes two separate calls, so a concurrent attempt or reset
        can land in between. Backends that hold a lock should override it.
        """
        allowed = self.check_limit(key, policy)
        return allowed, self.get_remaining_attempts(key, policy)
