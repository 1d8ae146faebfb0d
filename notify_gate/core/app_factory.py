"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from notify_gate.api.routes import health_router, notifications_router
from notify_gate.core.config import settings
from notify_gate.core.exception_handlers import setup_exception_handlers
from notify_gate.core.logging import configure_logging
from notify_gate.core.middleware import request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Notify Gate",
        description=(
            "Admission control for outbound notifications. Each (category, "
            "recipient) pair gets a fixed-window quota; notifications over "
            "quota are rejected with 429 and a Retry-After hint."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(notifications_router, prefix="/v1")
    app.include_router(health_router)

    return app
