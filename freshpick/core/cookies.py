"""Auth cookie helpers.

Both tokens travel in HTTP-only cookies on path ``/``; ``Secure`` is on
everywhere except development.
"""

from __future__ import annotations

from fastapi import Request, Response

from freshpick.core.config import settings

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _cookie_kwargs() -> dict:
    return {
        "httponly": True,
        "secure": settings.auth.cookie_secure,
        "samesite": settings.auth.cookie_samesite,
        "path": "/",
    }


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=settings.auth.access_cookie_max_age_seconds,
        **_cookie_kwargs(),
    )
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=settings.auth.refresh_cookie_max_age_seconds,
        **_cookie_kwargs(),
    )


def clear_auth_cookies(response: Response) -> None:
    """Expire both auth cookies (``Max-Age=0``)."""
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.set_cookie(name, "", max_age=0, **_cookie_kwargs())


def get_access_token(request: Request) -> str | None:
    """Access token from the cookie, falling back to ``Authorization: Bearer``."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def get_refresh_token(request: Request) -> str | None:
    return request.cookies.get(REFRESH_COOKIE)
