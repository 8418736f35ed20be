"""Tests for global exception handlers.

Validates that every error type maps to the right HTTP status with a
consistent body and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sjoelguard.core.errors import (
    AppError,
    AuthenticationAppError,
    RateLimitExceededError,
    UnknownPolicyError,
    ValidationAppError,
)
from sjoelguard.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_code_for,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


@pytest.mark.parametrize(
    ("error", "expected_status"),
    [
        (ValidationAppError(code="v", message="v"), 400),
        (AuthenticationAppError(code="a", message="a"), 403),
        (UnknownPolicyError(code="u", message="u"), 404),
        (RateLimitExceededError(code="r", message="r"), 429),
        (AppError(code="x", message="x"), 400),
    ],
)
def test_status_code_mapping(error: AppError, expected_status: int) -> None:
    assert status_code_for(error) == expected_status


class TestAppErrorHandler:
    def test_validation_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code="empty_identifier",
                message="A non-empty identifier is required",
                details={"hint": "send an e-mail address"},
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "empty_identifier"
        assert data["error"]["details"]["hint"] == "send an e-mail address"
        assert "request_id" in data["error"]

    def test_rate_limited_error_sets_retry_headers(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-throttle")
        async def test_endpoint():
            raise RateLimitExceededError(
                code="rate_limited",
                message="Too many score submissions, please slow down (retry in 1 minute).",
                details={"limit": 30, "remaining": 0, "reset_at": 1_700_000_060, "retry_after": 42},
            )

        response = client.get("/test-throttle")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.headers["X-RateLimit-Limit"] == "30"
        assert response.headers["X-RateLimit-Reset"] == "1700000060"
        assert response.json()["error"]["code"] == "rate_limited"

    def test_error_without_details_omits_the_key(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-format")
        async def test_endpoint():
            raise UnknownPolicyError(code="unknown_policy", message="nope")

        data = client.get("/test-format").json()

        assert set(data["error"]) == {"code", "message", "request_id"}


class TestGeneralExceptionHandler:
    def test_general_exception_handler_never_leaks_internals(self):
        request = AsyncMock()
        request.url.path = "/v1/limits/auth/sign-in"
        request.method = "POST"

        exc = RuntimeError("clock source unavailable")
        response = asyncio.run(general_exception_handler(request, exc))

        body = bytes(response.body).decode()
        data = json.loads(body)
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "clock source" not in body
        assert "RuntimeError" not in body
        assert "Traceback" not in body


def test_setup_exception_handlers_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
