"""Unit tests for the rate limit policy registry."""

import logging
from types import MappingProxyType

import pytest

from sjoelguard.core.errors import UnknownPolicyError
from sjoelguard.services.policies import (
    AuthAction,
    GameAction,
    Policy,
    RateLimitCategory,
    get_policy,
    list_policies,
    validate_policy_registry,
)


@pytest.mark.parametrize(
    ("category", "action", "window_seconds", "max_count"),
    [
        (RateLimitCategory.AUTH, AuthAction.SIGN_IN, 15 * 60, 5),
        (RateLimitCategory.AUTH, AuthAction.SIGN_UP, 60 * 60, 3),
        (RateLimitCategory.AUTH, AuthAction.PASSWORD_RESET, 60 * 60, 3),
        (RateLimitCategory.GAMES, GameAction.CREATE, 60 * 60, 10),
        (RateLimitCategory.GAMES, GameAction.SCORE_SUBMIT, 60, 30),
    ],
)
def test_registered_policies(category, action, window_seconds, max_count) -> None:
    policy = get_policy(category, action)

    assert policy.window_seconds == window_seconds
    assert policy.max_count == max_count
    assert policy.message


def test_lookup_accepts_string_values() -> None:
    assert get_policy("auth", "sign-in") is get_policy(RateLimitCategory.AUTH, AuthAction.SIGN_IN)
    assert get_policy("games", "score-submit").max_count == 30


@pytest.mark.parametrize(
    ("category", "action"),
    [
        ("auth", "signIn"),
        ("auth", "create"),
        ("games", "sign-in"),
        ("leaderboard", "view"),
        (RateLimitCategory.AUTH, GameAction.CREATE),
    ],
)
def test_unknown_policy_raises(category, action) -> None:
    with pytest.raises(UnknownPolicyError) as exc_info:
        get_policy(category, action)

    assert exc_info.value.code == "unknown_policy"


def test_policy_rejects_non_positive_values() -> None:
    with pytest.raises(ValueError):
        Policy(window_seconds=0, max_count=1)
    with pytest.raises(ValueError):
        Policy(window_seconds=60, max_count=0)


def test_policy_is_immutable() -> None:
    policy = get_policy("auth", "sign-in")

    with pytest.raises(AttributeError):
        policy.max_count = 100  # type: ignore[misc]


def test_list_policies_covers_every_action() -> None:
    listed = {(category.value, action) for category, action, _ in list_policies()}

    assert listed == {
        ("auth", "sign-in"),
        ("auth", "sign-up"),
        ("auth", "password-reset"),
        ("games", "create"),
        ("games", "score-submit"),
    }


def test_validate_registry_passes_for_builtin_table() -> None:
    validate_policy_registry()


def test_validate_registry_fails_loudly_on_missing_policy(caplog) -> None:
    partial = MappingProxyType(
        {(RateLimitCategory.AUTH, AuthAction.SIGN_IN.value): Policy(window_seconds=60, max_count=1)}
    )

    with caplog.at_level(logging.CRITICAL), pytest.raises(UnknownPolicyError) as exc_info:
        validate_policy_registry(partial)

    assert exc_info.value.code == "policy_registry_incomplete"
    assert "games:score-submit" in exc_info.value.message
    assert any(r.levelno == logging.CRITICAL for r in caplog.records)
