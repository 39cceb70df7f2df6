"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from freshpick.api.routes import (
    admin_router,
    auth_router,
    bags_router,
    catalog_router,
    cron_router,
    engagement_router,
    health_router,
    messages_router,
    orders_router,
    profile_router,
    roles_router,
)
from freshpick.core.config import settings
from freshpick.core.dependencies import get_store, set_store
from freshpick.core.exception_handlers import setup_exception_handlers
from freshpick.core.logging import configure_logging
from freshpick.core.middleware import request_id_middleware
from freshpick.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Connect eagerly so a misconfigured store fails at startup
    store = app.dependency_overrides.get(get_store, get_store)()
    logger.info(
        "app.started",
        extra={
            "environment": settings.app_env,
            "store_backend": type(store).__name__,
            "store_reachable": store.ping(),
        },
    )
    yield
    store.close()
    if get_store not in app.dependency_overrides:
        set_store(None)
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Fresh Pick API",
        description=(
            "Backend for the Fresh Pick online grocery store: catalogue, bags, "
            "orders with recurring deliveries, suppliers, blog and back-office "
            "administration. Authenticated with HTTP-only JWT cookies."
        ),
        version=settings.app.version,
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[settings.log.request_id_header],
    )
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    for router in (
        health_router,
        auth_router,
        catalog_router,
        bags_router,
        orders_router,
        profile_router,
        messages_router,
        engagement_router,
        roles_router,
        admin_router,
        cron_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
