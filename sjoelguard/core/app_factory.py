"""Application factory for the admission control API.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from sjoelguard import __version__
from sjoelguard.api.routes import health_router, limits_router
from sjoelguard.core.config import settings
from sjoelguard.core.exception_handlers import setup_exception_handlers
from sjoelguard.core.logging import configure_logging
from sjoelguard.core.middleware import request_id_middleware
from sjoelguard.core.openapi import apply_openapi_customizations
from sjoelguard.services.policies import validate_policy_registry

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        UnknownPolicyError: If the policy registry is incomplete.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    # A missing policy is a programmer error; refuse to start
    validate_policy_registry()

    app = FastAPI(
        title="Sjoelguard",
        description=(
            "Admission control for the sjoelen score tracker: throttles sign-in, "
            "sign-up and password-reset attempts per identifier, and game creation "
            "and score submission per user, using fixed-window counters."
        ),
        version=__version__,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(limits_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    logger.info(
        "app.started",
        extra={
            "app_env": settings.app_env,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
            "sweep_threshold": settings.app.rate_limit_sweep_threshold,
        },
    )
    return app
