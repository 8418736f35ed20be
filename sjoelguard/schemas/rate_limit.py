"""Request/response models for the admission control endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

MAX_IDENTIFIER_LENGTH = 320


class AuthAttemptRequest(BaseModel):
    identifier: str = Field(
        ...,
        min_length=1,
        max_length=MAX_IDENTIFIER_LENGTH,
        description="Stable identity for the attempt, typically the e-mail address",
    )


class GameAttemptRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128, description="Acting user's id")


class AdmissionResponse(BaseModel):
    """Budget after an admitted attempt."""

    allowed: bool
    limit: int = Field(..., description="Max actions per window")
    remaining: int = Field(..., description="Actions left in the current window")
    reset_at: int = Field(..., description="UNIX epoch seconds when the window ends")
    retry_after_seconds: int = Field(0, description="Seconds to wait before retrying")


class RemainingAttemptsResponse(BaseModel):
    """Budget for an identifier; reading it does not count as an attempt."""

    category: str
    action: str
    limit: int
    remaining: int
    reset_at: int = Field(..., description="UNIX epoch seconds when the window ends")
    retry_after_seconds: int


class PolicyResponse(BaseModel):
    category: str
    action: str
    window_seconds: int
    max_count: int
    message: str
