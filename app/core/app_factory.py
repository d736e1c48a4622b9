"""Application factory for the contact mail API.

Centralizes app construction (metadata, middleware, handlers, routers and
long-lived collaborators) so tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.adapters.mail.base import AbstractMailClient
from app.adapters.mail.factory import create_mail_client
from app.api.routes import health_router, mail_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.rate_limit import build_rate_limiter
from app.services.rate_limiter import RateLimiter


def create_app(
    *,
    rate_limiter: RateLimiter | None = None,
    mail_client: AbstractMailClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to use; a fresh in-memory one when omitted.
        mail_client: Mail client to use; built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Contact Mail API",
        description=(
            "Backend for the landing page contact form. Accepts a submission, "
            "applies a per-visitor rate limit (X-RateLimit-* headers) and "
            "forwards the message by email."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    # One limiter per app instance: its counter store is the only shared state
    app.state.rate_limiter = rate_limiter or build_rate_limiter()
    app.state.mail_client = mail_client or create_mail_client()

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(mail_router, prefix="/api")
    app.include_router(health_router)

    return app
