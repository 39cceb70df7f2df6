from __future__ import annotations

from freshpick.api.routes.admin import router as admin_router
from freshpick.api.routes.auth import router as auth_router
from freshpick.api.routes.bags import router as bags_router
from freshpick.api.routes.catalog import router as catalog_router
from freshpick.api.routes.cron import router as cron_router
from freshpick.api.routes.engagement import router as engagement_router
from freshpick.api.routes.health import router as health_router
from freshpick.api.routes.messages import router as messages_router
from freshpick.api.routes.orders import router as orders_router
from freshpick.api.routes.profile import router as profile_router
from freshpick.api.routes.roles import router as roles_router

__all__ = [
    "admin_router",
    "auth_router",
    "bags_router",
    "catalog_router",
    "cron_router",
    "engagement_router",
    "health_router",
    "messages_router",
    "orders_router",
    "profile_router",
    "roles_router",
]
