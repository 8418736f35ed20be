from __future__ import annotations

import time
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from sjoelguard.core.auth import verify_admin_api_key
from sjoelguard.core.rate_limit import enforce_action, get_rate_limit_service
from sjoelguard.schemas.rate_limit import (
    AdmissionResponse,
    AuthAttemptRequest,
    GameAttemptRequest,
    MAX_IDENTIFIER_LENGTH,
    PolicyResponse,
    RemainingAttemptsResponse,
)
from sjoelguard.services.policies import RateLimitCategory, list_policies
from sjoelguard.services.rate_limit_service import RateLimitService

router = APIRouter(tags=["Rate limits"])

ServiceDep = Annotated[RateLimitService, Depends(get_rate_limit_service)]


@router.post("/limits/auth/{action}", response_model=AdmissionResponse)
def attempt_auth_action(action: str, body: AuthAttemptRequest, service: ServiceDep) -> AdmissionResponse:
    """Record a sign-in, sign-up or password-reset attempt.

    Callers must not proceed with the auth flow (or retry) when this returns 429.
    """
    decision = enforce_action(service, RateLimitCategory.AUTH, action, body.identifier)
    return AdmissionResponse(**decision.__dict__)


@router.post("/limits/games/{action}", response_model=AdmissionResponse)
def attempt_game_action(action: str, body: GameAttemptRequest, service: ServiceDep) -> AdmissionResponse:
    """Record a game creation or score submission by a user."""
    decision = enforce_action(service, RateLimitCategory.GAMES, action, body.user_id)
    return AdmissionResponse(**decision.__dict__)


@router.get("/limits/{category}/{action}/remaining", response_model=RemainingAttemptsResponse)
def get_remaining_attempts(
    category: str,
    action: str,
    identifier: Annotated[str, Query(min_length=1, max_length=MAX_IDENTIFIER_LENGTH)],
    service: ServiceDep,
) -> RemainingAttemptsResponse:
    """Report the remaining budget without consuming it."""
    budget = service.remaining_for(category, action, identifier)
    return RemainingAttemptsResponse(
        category=category,
        action=action,
        limit=budget.limit,
        remaining=budget.remaining,
        reset_at=int(time.time()) + budget.retry_after_seconds,
        retry_after_seconds=budget.retry_after_seconds,
    )


@router.delete(
    "/limits/{category}/{action}/{identifier:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(verify_admin_api_key)],
)
def reset_counter(category: str, action: str, identifier: str, service: ServiceDep) -> Response:
    """Administrative override: clear throttling for one identifier."""
    service.reset_for(category, action, identifier)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/policies", response_model=list[PolicyResponse])
def get_policies() -> list[PolicyResponse]:
    return [
        PolicyResponse(
            category=category.value,
            action=action,
            window_seconds=policy.window_seconds,
            max_count=policy.max_count,
            message=policy.message,
        )
        for category, action, policy in list_policies()
    ]
