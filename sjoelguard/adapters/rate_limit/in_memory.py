"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: one lock guards every read-modify-write of the store.
- Windows start at the first attempt for a key, not on a global grid.
- Fixed windows allow a burst of up to twice ``max_count`` straddling a
  window boundary. That is accepted in exchange for O(1) state per key.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from sjoelguard.adapters.rate_limit.base import AbstractRateLimiter, RemainingAttempts
from sjoelguard.services.policies import Policy

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_THRESHOLD = 1000


@dataclass
class _CounterEntry:
    count: int
    reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Counts attempts per key within a fixed window.

    Expired entries are not removed on a timer. Once the store holds more than
    ``sweep_threshold`` entries, the next ``check_limit`` sweeps out every
    expired one first, which bounds growth from churn of distinct identifiers.
    """

    def __init__(
        self,
        *,
        sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            sweep_threshold: Store size above which expired entries are swept.
            clock: Monotonic time source returning seconds.

        Raises:
            ValueError: If sweep_threshold is invalid.
        """
        if sweep_threshold < 1:
            raise ValueError("sweep_threshold must be >= 1")

        self._sweep_threshold = sweep_threshold
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, _CounterEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def sweep_threshold(self) -> int:
        return self._sweep_threshold

    def _retry_after(self, reset_at: float, now: float) -> int:
        return max(0, int(math.ceil(reset_at - now)))

    def check_limit(self, key: str, policy: Policy) -> bool:
        """Record an attempt and decide admission.

        The count never grows past ``policy.max_count``: a denied attempt
        leaves the entry untouched.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            if len(self._entries) > self._sweep_threshold:
                self._sweep_locked(self._clock())

            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or entry.reset_at <= now:
                self._entries[key] = _CounterEntry(count=1, reset_at=now + policy.window_seconds)
                return True

            if entry.count >= policy.max_count:
                return False

            entry.count += 1
            return True

    def get_remaining_attempts(self, key: str, policy: Policy) -> RemainingAttempts:
        """Report the budget for ``key`` without recording an attempt.

        A missing or expired entry reports a full, hypothetical fresh window
        starting now.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or entry.reset_at <= now:
                reset_at = now + policy.window_seconds
                remaining = policy.max_count
            else:
                reset_at = entry.reset_at
                remaining = max(0, policy.max_count - entry.count)

        return RemainingAttempts(
            limit=policy.max_count,
            remaining=remaining,
            reset_at=reset_at,
            retry_after_seconds=self._retry_after(reset_at, now),
        )

    def check_and_report(self, key: str, policy: Policy) -> tuple[bool, RemainingAttempts]:
        """Record an attempt and read the resulting budget under one lock hold."""
        with self._lock:
            allowed = self.check_limit(key, policy)
            return allowed, self.get_remaining_attempts(key, policy)

    def reset(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.reset_at <= now]
        for key in expired:
            del self._entries[key]
        logger.debug(
            "rate_limit.sweep",
            extra={"removed": len(expired), "store_size": len(self._entries)},
        )
        return len(expired)
