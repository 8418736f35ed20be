"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    category: str
    action: str
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    http_status: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class UnknownPolicyError(AppError):
    """Raised when a category/action pair has no registered rate limit policy.

    This is a programmer error: callers must only name registered policies.
    """


class RateLimitExceededError(AppError):
    """Raised by the HTTP layer when a policy denies an action.

    The limiter itself never raises this; a denied check is a plain ``False``.
    """

    @property
    def retry_after_seconds(self) -> int:
        return int((self.details or {}).get("retry_after", 0))
