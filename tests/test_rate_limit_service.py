"""Tests for the auth/game convenience wrappers over the limiter."""

from unittest.mock import patch

import pytest

from sjoelguard.core.errors import UnknownPolicyError, ValidationAppError
from sjoelguard.services import rate_limit_service
from sjoelguard.services.policies import AuthAction, GameAction, get_policy
from sjoelguard.services.rate_limit_service import (
    RateLimitService,
    build_key,
    format_retry_message,
)


@pytest.fixture
def service(limiter) -> RateLimitService:
    return RateLimitService(limiter)


def test_build_key_namespaces_by_category_and_action() -> None:
    assert build_key("auth", AuthAction.SIGN_IN, "alice@example.com") == "auth:sign-in:alice@example.com"
    assert build_key("games", "score-submit", "user-42") == "games:score-submit:user-42"


def test_build_key_rejects_blank_identifier() -> None:
    with pytest.raises(ValidationAppError):
        build_key("auth", "sign-in", "   ")


def test_sign_in_scenario(service, clock) -> None:
    policy = get_policy("auth", "sign-in")
    key = "auth:sign-in:alice@example.com"

    for _ in range(5):
        assert service.check_auth_limit(AuthAction.SIGN_IN, "alice@example.com") is True
    assert service.get_remaining_attempts(key, policy).remaining == 0

    assert service.check_auth_limit(AuthAction.SIGN_IN, "alice@example.com") is False

    clock.advance(15 * 60)

    assert service.check_auth_limit("sign-in", "alice@example.com") is True
    assert service.get_remaining_attempts(key, policy).remaining == 4


def test_auth_limits_are_per_identifier_and_action(service) -> None:
    for _ in range(3):
        service.check_auth_limit(AuthAction.SIGN_UP, "bob@example.com")

    assert service.check_auth_limit(AuthAction.SIGN_UP, "bob@example.com") is False
    assert service.check_auth_limit(AuthAction.SIGN_UP, "carol@example.com") is True
    assert service.check_auth_limit(AuthAction.PASSWORD_RESET, "bob@example.com") is True


def test_game_limits_use_games_namespace(service, limiter) -> None:
    for _ in range(10):
        assert service.check_game_limit(GameAction.CREATE, "user-1") is True

    assert service.check_game_limit(GameAction.CREATE, "user-1") is False
    assert service.check_game_limit(GameAction.SCORE_SUBMIT, "user-1") is True
    assert "games:create:user-1" in limiter._entries


def test_wrong_category_action_is_unknown(service) -> None:
    with pytest.raises(UnknownPolicyError):
        service.check_auth_limit("create", "user-1")
    with pytest.raises(UnknownPolicyError):
        service.check_game_limit("signIn", "user-1")


def test_remaining_for_reports_without_consuming(service) -> None:
    service.check_game_limit("score-submit", "user-7")

    budget = service.remaining_for("games", "score-submit", "user-7")
    again = service.remaining_for("games", "score-submit", "user-7")

    assert budget.remaining == 29
    assert again == budget


def test_reset_for_clears_throttling(service) -> None:
    for _ in range(6):
        service.check_auth_limit("sign-in", "dave@example.com")

    service.reset_for("auth", "sign-in", "dave@example.com")
    service.reset_for("auth", "sign-in", "dave@example.com")

    assert service.check_auth_limit("sign-in", "dave@example.com") is True


def test_reset_by_raw_key(service) -> None:
    service.check_auth_limit("password-reset", "erin@example.com")

    service.reset("auth:password-reset:erin@example.com")

    assert service.remaining_for("auth", "password-reset", "erin@example.com").remaining == 3


@pytest.mark.parametrize(
    ("retry_after", "expected_suffix"),
    [
        (0, "(retry in 1 minute)."),
        (45, "(retry in 1 minute)."),
        (61, "(retry in 2 minutes)."),
        (15 * 60, "(retry in 15 minutes)."),
    ],
)
def test_retry_message_rounds_minutes_up(retry_after, expected_suffix) -> None:
    message = format_retry_message(get_policy("auth", "sign-in"), retry_after)

    assert message.startswith("Too many login attempts")
    assert message.endswith(expected_suffix)


def test_throttle_message_uses_policy_text(service) -> None:
    message = service.throttle_message("games", "score-submit", 30)

    assert message == "Too many score submissions, please slow down (retry in 1 minute)."


def test_attempt_reports_decision_with_budget(service) -> None:
    outcome = service.attempt("games", GameAction.CREATE, "user-42")

    assert outcome.allowed is True
    assert outcome.key == "games:create:user-42"
    assert outcome.policy == get_policy("games", "create")
    assert outcome.budget.remaining == outcome.policy.max_count - 1


def test_attempt_budget_is_zero_once_denied(service) -> None:
    for _ in range(5):
        service.attempt("auth", "sign-in", "alice@example.com")

    outcome = service.attempt("auth", "sign-in", "alice@example.com")

    assert outcome.allowed is False
    assert outcome.budget.remaining == 0
    assert outcome.budget.retry_after_seconds == 15 * 60


def test_attempt_resolves_policy_and_key_once(service) -> None:
    with (
        patch.object(rate_limit_service, "get_policy", wraps=get_policy) as policy_spy,
        patch.object(rate_limit_service, "build_key", wraps=build_key) as key_spy,
    ):
        service.attempt("auth", "sign-up", "bob@example.com")

    assert policy_spy.call_count == 1
    assert key_spy.call_count == 1
