"""Cookie/JWT authentication dependencies and role checks.

The access token is read from the ``accessToken`` cookie, or from an
``Authorization: Bearer`` header for non-browser clients. Role checks
accept either the user's primary role or one of ``secondary_roles``.

Usage:
    @router.get("/me")
    def me(user: CurrentUser):
        ...

    @router.delete("/{id}", dependencies=[Depends(require_admin)])
    async def delete(...):
        ...
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Callable

from fastapi import Depends, Request

from freshpick.adapters.store.base import AbstractDocumentStore
from freshpick.core.cookies import get_access_token
from freshpick.core.dependencies import get_store
from freshpick.core.errors import AuthenticationAppError, AuthorizationAppError
from freshpick.services.auth_service import AuthService

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def user_roles(user: dict[str, Any]) -> set[str]:
    return {user.get("role", "customer"), *user.get("secondary_roles", [])}


def has_any_role(user: dict[str, Any], roles: tuple[str, ...] | list[str]) -> bool:
    return bool(user_roles(user) & set(roles))


def is_admin(user: dict[str, Any]) -> bool:
    return ADMIN_ROLE in user_roles(user)


def get_current_user(
    request: Request,
    store: Annotated[AbstractDocumentStore, Depends(get_store)],
) -> dict[str, Any]:
    """Resolve the signed-in user (stored document, including ``_id``).

    Raises:
        AuthenticationAppError: 401 when the token is missing, invalid,
            expired, not an access token, or its user no longer exists.
        AuthorizationAppError: 403 when the account is banned.
    """
    token = get_access_token(request)
    if not token:
        raise AuthenticationAppError(code="not_authenticated", message="Authentication required")
    return AuthService(store).get_user_for_access_token(token)


def get_current_user_optional(
    request: Request,
    store: Annotated[AbstractDocumentStore, Depends(get_store)],
) -> dict[str, Any] | None:
    """Like ``get_current_user`` but returns None for anonymous callers."""
    token = get_access_token(request)
    if not token:
        return None
    try:
        return AuthService(store).get_user_for_access_token(token)
    except (AuthenticationAppError, AuthorizationAppError):
        return None


CurrentUser = Annotated[dict[str, Any], Depends(get_current_user)]
OptionalUser = Annotated[dict[str, Any] | None, Depends(get_current_user_optional)]


def require_roles(*roles: str) -> Callable[..., Any]:
    """Dependency factory for role-based access control.

    Usage:
        @router.get("/stock", dependencies=[Depends(require_roles("admin", "inventory_manager"))])
    """

    async def role_checker(user: CurrentUser) -> dict[str, Any]:
        if not has_any_role(user, roles):
            logger.warning(
                "auth.forbidden",
                extra={"user_id": user.get("user_id"), "required_roles": list(roles)},
            )
            raise AuthorizationAppError(
                code="insufficient_role",
                message="You do not have permission to perform this action",
                details={"required_roles": list(roles)},
            )
        return user

    return role_checker


require_admin = require_roles(ADMIN_ROLE)
AdminUser = Annotated[dict[str, Any], Depends(require_admin)]
