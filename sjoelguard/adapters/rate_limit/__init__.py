"""Rate limiting adapters.

Callers depend on :class:`AbstractRateLimiter`; the in-memory fixed-window
limiter is the only backend today. A token bucket or sliding log can be
dropped in behind the same interface without touching callers.
"""

from sjoelguard.adapters.rate_limit.base import AbstractRateLimiter, RemainingAttempts
from sjoelguard.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = ["AbstractRateLimiter", "InMemoryFixedWindowRateLimiter", "RemainingAttempts"]
