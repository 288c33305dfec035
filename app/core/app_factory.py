"""Application factory for the FastAPI app.

Builds the app together with its long-lived collaborators (credential
store, token issuer, rate limiter, auth service) and attaches them to
``app.state``. Tests pass their own collaborators instead of patching
module globals.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.user_store.base import AbstractUserStore
from app.adapters.user_store.factory import create_user_store
from app.api.routes import auth_router, health_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_rate_limiter
from app.core.security import TokenIssuer
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    store: AbstractUserStore = app.state.user_store
    await store.initialize()
    logger.info("app.started", extra={"store": type(store).__name__})
    try:
        yield
    finally:
        await store.close()
        logger.info("app.stopped")


def create_app(
    *,
    user_store: AbstractUserStore | None = None,
    token_issuer: TokenIssuer | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        user_store: Credential store; built from DB_* settings if omitted.
        token_issuer: Token signer; built from AUTH_* settings if omitted.
        rate_limiter: Signup limiter; built from APP_RATE_LIMIT_* if omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="User Authentication API",
        description=(
            "Minimal user authentication service: register a user, log in and "
            "receive a signed bearer token. Signup is rate-limited per client IP."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    store = user_store if user_store is not None else create_user_store(settings.db)
    issuer = token_issuer if token_issuer is not None else TokenIssuer.from_settings(settings.auth)

    app.state.user_store = store
    app.state.token_issuer = issuer
    app.state.rate_limiter = (
        rate_limiter if rate_limiter is not None else build_rate_limiter(settings.app)
    )
    app.state.auth_service = AuthService(
        store=store,
        token_issuer=issuer,
        operation_timeout=settings.db.operation_timeout_seconds,
        bcrypt_rounds=settings.auth.bcrypt_rounds,
    )

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
