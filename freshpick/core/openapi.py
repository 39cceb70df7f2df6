"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Cookie (``accessToken``) and bearer security schemes
- Tags metadata
- ``security: []`` on public endpoints

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from freshpick.core.cookies import ACCESS_COOKIE

# (method, path below /api) pairs that do not need a signed-in user
PUBLIC_OPERATIONS = {
    ("get", "/health"),
    ("post", "/auth/signup"),
    ("post", "/auth/login"),
    ("post", "/auth/refresh"),
    ("post", "/auth/logout"),
    ("get", "/products"),
    ("get", "/products/{ref}"),
    ("get", "/products/exists/{sku}"),
    ("get", "/products/brands"),
    ("get", "/products/brands/{brand_id}"),
    ("get", "/categories"),
    ("get", "/blogs"),
    ("get", "/blogs/{slug}"),
    ("post", "/newsletter"),
    ("post", "/suppliers/register"),
    ("get", "/reviews"),
    ("post", "/contact"),
}

TAGS = [
    {"name": "Health", "description": "Liveness and readiness checks."},
    {"name": "Auth", "description": "Sign-up, sign-in and cookie token rotation."},
    {"name": "Catalog", "description": "Products, brands, categories, blog posts and reviews."},
    {"name": "Bags", "description": "Saved shopping bags."},
    {"name": "Orders", "description": "Orders and recurring deliveries."},
    {"name": "Profile", "description": "Wishlist and saved delivery addresses."},
    {"name": "Messages", "description": "Messages from the Fresh Pick team."},
    {"name": "Engagement", "description": "Newsletter, supplier registration and the contact form."},
    {"name": "Roles", "description": "Roles and permissions (admin)."},
    {"name": "Admin", "description": "Back-office management (admin)."},
    {"name": "Cron", "description": "Scheduler hooks authenticated by a shared secret."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "CookieAuth",
            {
                "type": "apiKey",
                "in": "cookie",
                "name": ACCESS_COOKIE,
                "description": "Access token set by /api/auth/login.",
            },
        )
        security_schemes.setdefault(
            "BearerAuth",
            {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
        )
        schema.setdefault("security", [{"CookieAuth": []}, {"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method, operation in methods.items():
                if not isinstance(operation, dict):
                    continue
                if (method, path.removeprefix("/api")) in PUBLIC_OPERATIONS:
                    operation["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
