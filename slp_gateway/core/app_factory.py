from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers,
upstream client lifecycle) so tests can build isolated instances.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from slp_gateway.api.deps import close_upstream_clients
from slp_gateway.api.routes import control_router, health_router, slp_router
from slp_gateway.core.config import settings
from slp_gateway.core.exception_handlers import setup_exception_handlers
from slp_gateway.core.logging import configure_logging
from slp_gateway.core.middleware import request_id_middleware
from slp_gateway.core.openapi import apply_openapi_customizations


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_upstream_clients()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="SLP Gateway API",
        description=(
            "Token-ledger (SLP) queries and transaction validation over an SLP "
            "index service and a full node. Every route is rate limited per "
            "client and route; errors are returned as {\"error\": message}."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(slp_router)
    app.include_router(control_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
