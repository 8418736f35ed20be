"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before anything imports the settings module.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-admin-key-123,test-admin-key-456")
os.environ.setdefault("LOG_FORMAT", "plain")

import pytest

from sjoelguard.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from sjoelguard.core.rate_limit import reset_rate_limiter


class FakeClock:
    """Deterministic monotonic clock for window expiry tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(clock=clock)


@pytest.fixture(autouse=True)
def _fresh_process_limiter():
    """Drop the process-wide limiter so counters never leak between tests."""
    reset_rate_limiter()
    yield
    reset_rate_limiter()
