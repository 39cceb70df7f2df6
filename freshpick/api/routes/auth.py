"""Sign-up, sign-in and token rotation.

Tokens are returned as HTTP-only cookies only; response bodies carry the
public user.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from freshpick.api.dependencies import Auth
from freshpick.api.responses import success
from freshpick.core.auth import CurrentUser
from freshpick.core.cookies import clear_auth_cookies, get_refresh_token, set_auth_cookies
from freshpick.core.errors import AppError
from freshpick.core.rate_limit import enforce_auth_rate_limit
from freshpick.schemas.auth import LoginRequest, SignupRequest
from freshpick.services.auth_service import public_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_auth_rate_limit)],
)
def signup(payload: SignupRequest, response: Response, auth: Auth) -> dict:
    result = auth.signup(payload)
    set_auth_cookies(response, result.access_token, result.refresh_token)
    return success({"user": result.user}, "Account created successfully")


@router.post("/login", dependencies=[Depends(enforce_auth_rate_limit)])
def login(payload: LoginRequest, response: Response, auth: Auth) -> dict:
    result = auth.login(payload.identifier, payload.password)
    set_auth_cookies(response, result.access_token, result.refresh_token)
    return success({"user": result.user}, "Login successful")


@router.post("/refresh")
def refresh(request: Request, response: Response, auth: Auth) -> dict:
    result = auth.refresh(get_refresh_token(request))
    set_auth_cookies(response, result.access_token, result.refresh_token)
    return success({"user": result.user}, "Token refreshed")


@router.post("/logout")
def logout(request: Request, response: Response, auth: Auth) -> dict:
    """Sign out this device. Cookies are cleared even if the token is unknown."""
    try:
        auth.logout(get_refresh_token(request))
    except AppError as exc:
        logger.info("auth.logout_token_ignored", extra={"error_code": exc.code})
    clear_auth_cookies(response)
    return success(None, "Logged out successfully")


@router.post("/logout-all")
def logout_all(user: CurrentUser, response: Response, auth: Auth) -> dict:
    auth.logout_all(user["user_id"])
    clear_auth_cookies(response)
    return success(None, "Logged out from all devices")


@router.get("/me")
def me(user: CurrentUser) -> dict:
    return success({"user": public_user(user)})
