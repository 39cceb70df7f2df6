from __future__ import annotations

import logging

from fastapi import APIRouter

from freshpick.api.dependencies import Store
from freshpick.api.responses import success
from freshpick.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(store: Store) -> dict:
    """Health check endpoint.

    Always answers 200 so load balancers can tell a degraded instance (store
    unreachable) from a dead one.
    """
    healthy = store.ping()
    if not healthy:
        logger.warning("health.store_unreachable")
    return success(
        {
            "status": "healthy" if healthy else "degraded",
            "environment": settings.app_env,
            "version": settings.app.version,
            "store": "up" if healthy else "down",
        },
        "Service is running",
    )
