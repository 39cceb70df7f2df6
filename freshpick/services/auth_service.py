"""Signup, login, refresh-token rotation and logout.

Refresh tokens are stored per user as ``{hashed_token, expires_at,
created_at}`` entries, one per signed-in device. A refresh consumes its
entry and issues a new pair, so a rotated token can never be replayed.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from freshpick.adapters.store.base import AbstractDocumentStore, Document
from freshpick.core.errors import (
    AuthenticationAppError,
    AuthorizationAppError,
    ConflictAppError,
)
from freshpick.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    hash_password,
    hash_refresh_token,
    sign_access_token,
    sign_refresh_token,
    utcnow,
    verify_password,
    verify_token,
)
from freshpick.schemas.auth import RegistrationAddress, SignupRequest
from freshpick.utils.documents import to_public

logger = logging.getLogger(__name__)

USERS = "users"
PRIVATE_USER_FIELDS = ("password_hash", "refresh_tokens")

COUNTRY_CODES = {
    "sri lanka": "LK",
    "india": "IN",
    "united states": "US",
    "united kingdom": "GB",
    "australia": "AU",
    "canada": "CA",
}


@dataclass(frozen=True)
class AuthResult:
    user: dict[str, Any]
    access_token: str
    refresh_token: str


def public_user(user: Document | None) -> dict[str, Any] | None:
    """User representation safe to return to clients."""
    return to_public(user, exclude=PRIVATE_USER_FIELDS)


def country_code(country: str) -> str:
    return COUNTRY_CODES.get(country.strip().lower(), country.strip().upper()[:2])


def map_registration_address(
    address: RegistrationAddress,
    *,
    recipient_name: str,
    phone_number: str,
) -> dict[str, Any]:
    return {
        "recipient_name": recipient_name,
        "street_address": address.address_line1,
        "street_address2": address.address_line2,
        "town": address.city,
        "city": address.city,
        "state": address.province,
        "postal_code": address.postal_code,
        "country_code": country_code(address.country),
        "phone_number": phone_number,
        "type": "home",
    }


def _token_claims(user: Document) -> dict[str, Any]:
    return {"user_id": user["user_id"], "email": user.get("email"), "role": user["role"]}


class AuthService:
    """Credential checks and token lifecycle on top of the ``users`` collection."""

    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def _issue(self, user: Document) -> tuple[str, dict[str, Any], str]:
        claims = _token_claims(user)
        access_token = sign_access_token(claims)
        refresh = sign_refresh_token(claims)
        entry = {
            "hashed_token": refresh.hashed_token,
            "expires_at": refresh.expires_at,
            "created_at": utcnow(),
        }
        return access_token, entry, refresh.token

    def signup(self, data: SignupRequest) -> AuthResult:
        """Register a customer and sign them in.

        Raises:
            ConflictAppError: If the email or phone number is already taken.
        """
        conditions: list[dict[str, Any]] = [{"phone_number": data.phone_number}]
        if data.email:
            conditions.append({"email": data.email})
        existing = self.store.find_one(USERS, {"$or": conditions})
        if existing:
            if data.email and existing.get("email") == data.email:
                raise ConflictAppError(
                    code="email_taken",
                    message="User with this email already exists",
                    details={"field": "email"},
                )
            raise ConflictAppError(
                code="phone_taken",
                message="User with this phone number already exists",
                details={"field": "phone_number"},
            )

        now = utcnow()
        recipient = f"{data.first_name} {data.last_name or ''}".strip()
        address = map_registration_address(
            data.registration_address,
            recipient_name=recipient,
            phone_number=data.phone_number,
        )
        user: Document = {
            "user_id": str(uuid.uuid4()),
            "first_name": data.first_name,
            "last_name": data.last_name,
            "phone_number": data.phone_number,
            "password_hash": hash_password(data.password),
            "role": "customer",
            "secondary_roles": [],
            "is_banned": False,
            "is_email_verified": False,
            "is_phone_verified": False,
            "registration_address": address,
            "addresses": [address],
            "supplier_id": None,
            "gift_card_balance": 0.0,
            "refresh_tokens": [],
            "created_at": now,
            "updated_at": now,
        }
        # Sparse unique index: omit the field rather than store null
        if data.email:
            user["email"] = data.email

        access_token, entry, refresh_token = self._issue(user)
        user["refresh_tokens"] = [entry]
        stored = self.store.insert_one(USERS, user)

        logger.info("auth.signup_succeeded", extra={"user_id": stored["user_id"]})
        return AuthResult(public_user(stored), access_token, refresh_token)

    def login(self, identifier: str, password: str) -> AuthResult:
        """Authenticate by email or phone number.

        Raises:
            AuthenticationAppError: Unknown user or wrong password.
            AuthorizationAppError: The account is banned.
        """
        identifier = identifier.strip()
        user = self.store.find_one(
            USERS,
            {"$or": [{"email": identifier.lower()}, {"phone_number": identifier}]},
        )
        if not user or not verify_password(password, user.get("password_hash")):
            logger.info("auth.login_failed", extra={"reason": "invalid_credentials"})
            raise AuthenticationAppError(
                code="invalid_credentials",
                message="Invalid credentials",
            )
        if user.get("is_banned"):
            logger.info("auth.login_failed", extra={"reason": "banned", "user_id": user["user_id"]})
            raise AuthorizationAppError(code="account_banned", message="Account is banned")

        now = utcnow()
        access_token, entry, refresh_token = self._issue(user)
        # Prune expired sessions, then add this device
        self.store.update_one(
            USERS,
            {"_id": user["_id"]},
            {"$pull": {"refresh_tokens": {"expires_at": {"$lte": now}}}},
        )
        updated = self.store.find_one_and_update(
            USERS,
            {"_id": user["_id"]},
            {
                "$push": {"refresh_tokens": entry},
                "$set": {"last_login_at": now, "updated_at": now},
            },
        )

        logger.info("auth.login_succeeded", extra={"user_id": user["user_id"]})
        return AuthResult(public_user(updated or user), access_token, refresh_token)

    def refresh(self, refresh_token: str | None) -> AuthResult:
        """Rotate a refresh token.

        Raises:
            AuthenticationAppError: Missing, invalid, expired or already used token.
            AuthorizationAppError: The account is banned.
        """
        if not refresh_token:
            raise AuthenticationAppError(code="missing_refresh_token", message="Refresh token required")

        claims = verify_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        hashed = hash_refresh_token(refresh_token)
        now = utcnow()

        user = self.store.find_one(
            USERS,
            {
                "user_id": claims.get("user_id"),
                "refresh_tokens": {
                    "$elemMatch": {"hashed_token": hashed, "expires_at": {"$gt": now}}
                },
            },
        )
        if not user:
            logger.warning("auth.refresh_rejected", extra={"reason": "unknown_or_used_token"})
            raise AuthenticationAppError(
                code="invalid_refresh_token",
                message="Invalid or expired refresh token",
            )
        if user.get("is_banned"):
            raise AuthorizationAppError(code="account_banned", message="Account is banned")

        access_token, entry, new_refresh_token = self._issue(user)
        # Consume the presented token; a concurrent refresh with it loses here
        consumed = self.store.update_one(
            USERS,
            {"_id": user["_id"], "refresh_tokens.hashed_token": hashed},
            {"$pull": {"refresh_tokens": {"hashed_token": hashed}}},
        )
        if not consumed:
            raise AuthenticationAppError(
                code="invalid_refresh_token",
                message="Invalid or expired refresh token",
            )
        updated = self.store.find_one_and_update(
            USERS,
            {"_id": user["_id"]},
            {"$push": {"refresh_tokens": entry}, "$set": {"updated_at": now}},
        )

        logger.info("auth.refresh_succeeded", extra={"user_id": user["user_id"]})
        return AuthResult(public_user(updated or user), access_token, new_refresh_token)

    def logout(self, refresh_token: str | None) -> None:
        """Forget one device's refresh token; unknown tokens are ignored."""
        if not refresh_token:
            return
        hashed = hash_refresh_token(refresh_token)
        self.store.update_one(
            USERS,
            {"refresh_tokens.hashed_token": hashed},
            {"$pull": {"refresh_tokens": {"hashed_token": hashed}}},
        )
        logger.info("auth.logout")

    def logout_all(self, user_id: str) -> None:
        self.store.update_one(
            USERS,
            {"user_id": user_id},
            {"$set": {"refresh_tokens": [], "updated_at": utcnow()}},
        )
        logger.info("auth.logout_all", extra={"user_id": user_id})

    def get_user_for_access_token(self, access_token: str) -> Document:
        """Resolve the (non-banned) user behind an access token.

        Raises:
            AuthenticationAppError: Invalid token or unknown user.
            AuthorizationAppError: The account is banned.
        """
        claims = verify_token(access_token, expected_type=ACCESS_TOKEN_TYPE)
        user = self.store.find_one(USERS, {"user_id": claims.get("user_id")})
        if not user:
            raise AuthenticationAppError(code="user_not_found", message="User not found")
        if user.get("is_banned"):
            raise AuthorizationAppError(code="account_banned", message="Account is banned")
        return user

    def get_user_by_token(self, access_token: str) -> dict[str, Any] | None:
        """Public view of the token's user, or None when the token is unusable."""
        try:
            return public_user(self.get_user_for_access_token(access_token))
        except (AuthenticationAppError, AuthorizationAppError):
            return None
