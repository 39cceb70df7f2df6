"""Password hashing and JWT issuance/verification.

Access tokens are short-lived (15 minutes by default) and carry the user's
id, email and role. Refresh tokens live for 30 days; only their SHA-256
hash is ever persisted, so a leaked database does not leak usable tokens.

Every token carries a random ``jti`` so two tokens minted in the same
second for the same user are still distinct.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from freshpick.core.config import settings
from freshpick.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class RefreshToken:
    """A freshly signed refresh token and what gets stored for it."""

    token: str
    hashed_token: str
    expires_at: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.auth.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def hash_refresh_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_secure_token(num_bytes: int = 32) -> str:
    """Random hex token for one-off secrets (verification links, resets)."""
    return secrets.token_hex(num_bytes)


def _encode(claims: dict[str, Any], token_type: str, expires_at: datetime) -> str:
    now = utcnow()
    payload = {
        **claims,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.auth.jwt_secret, algorithm=settings.auth.jwt_algorithm)


def sign_access_token(claims: dict[str, Any]) -> str:
    """Sign an access token for ``claims`` (``user_id``, ``email``, ``role``)."""
    expires_at = utcnow() + timedelta(minutes=settings.auth.access_token_ttl_minutes)
    return _encode(claims, ACCESS_TOKEN_TYPE, expires_at)


def sign_refresh_token(claims: dict[str, Any]) -> RefreshToken:
    expires_at = utcnow() + timedelta(days=settings.auth.refresh_token_ttl_days)
    token = _encode(claims, REFRESH_TOKEN_TYPE, expires_at)
    return RefreshToken(
        token=token,
        hashed_token=hash_refresh_token(token),
        expires_at=expires_at,
    )


def verify_token(token: str, *, expected_type: str | None = None) -> dict[str, Any]:
    """Decode and validate a token signed by this service.

    Args:
        token: Encoded JWT.
        expected_type: When given, the ``type`` claim must match.

    Returns:
        The token claims.

    Raises:
        AuthenticationAppError: ``token_expired``, ``invalid_token`` or
            ``invalid_token_type``.
    """
    try:
        claims = jwt.decode(
            token,
            settings.auth.jwt_secret,
            algorithms=[settings.auth.jwt_algorithm],
        )
    except ExpiredSignatureError as exc:
        raise AuthenticationAppError(code="token_expired", message="Token has expired") from exc
    except JWTError as exc:
        raise AuthenticationAppError(code="invalid_token", message="Invalid token") from exc

    if expected_type and claims.get("type") != expected_type:
        logger.info(
            "auth.token_type_mismatch",
            extra={"expected_type": expected_type, "actual_type": claims.get("type")},
        )
        raise AuthenticationAppError(code="invalid_token_type", message="Invalid token type")

    return claims
