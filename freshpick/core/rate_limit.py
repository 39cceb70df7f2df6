"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Two policies share one mechanism:
- ``auth``: signup and login attempts (50 per 5 minutes by default).
- ``general``: anonymous write endpoints such as newsletter signup and
  supplier registration (100 per minute by default).

Clients are keyed by IP: the first ``X-Forwarded-For`` entry, then
``X-Real-IP``, then the socket peer.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status

from freshpick.adapters.rate_limit.base import AbstractRateLimiter
from freshpick.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from freshpick.core.config import settings

logger = logging.getLogger(__name__)

AUTH_POLICY = "auth"
GENERAL_POLICY = "general"

_limiters: dict[str, AbstractRateLimiter] = {}
_limiter_configs: dict[str, tuple[int, int]] = {}


def _policy_config(policy: str) -> tuple[int, int]:
    if policy == AUTH_POLICY:
        return (
            settings.app.auth_rate_limit_requests,
            settings.app.auth_rate_limit_window_seconds,
        )
    return (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
    )


def get_rate_limiter(policy: str = GENERAL_POLICY) -> AbstractRateLimiter:
    """Return the process-wide limiter for a policy.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    config = _policy_config(policy)
    limiter = _limiters.get(policy)

    if limiter is None or _limiter_configs.get(policy) != config:
        limit, window_seconds = config
        limiter = InMemoryFixedWindowRateLimiter(limit=limit, window_seconds=window_seconds)
        _limiters[policy] = limiter
        _limiter_configs[policy] = config

    return limiter


def reset_rate_limiters() -> None:
    """Forget every policy's state."""
    for limiter in _limiters.values():
        limiter.reset()


def get_client_ip(request: Request) -> str:
    """Resolve the client address, honouring reverse-proxy headers."""

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "127.0.0.1"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit(policy: str = GENERAL_POLICY) -> Callable[[Request], Awaitable[None]]:
    """Build a dependency enforcing ``policy`` for the calling client.

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limit(AUTH_POLICY))])
    """

    async def enforce_rate_limit(request: Request) -> None:
        if not settings.app.rate_limit_enabled:
            return

        limiter = get_rate_limiter(policy)
        key = f"{policy}:{get_client_ip(request)}"
        key_hash = _hash_limiter_key(key)
        _, window_seconds = _policy_config(policy)

        result = limiter.consume(key)
        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "policy": policy,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "window_s": window_seconds,
                },
            )
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "policy": policy,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": window_seconds,
                "retry_after_s": retry_after,
            },
        )

        headers: dict[str, str] = {}
        if settings.app.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(result.limit)
            headers["X-RateLimit-Remaining"] = str(result.remaining)
            headers["X-RateLimit-Reset"] = str(result.reset_at)

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later.",
            headers=headers or None,
        )

    return enforce_rate_limit


enforce_auth_rate_limit = rate_limit(AUTH_POLICY)
enforce_general_rate_limit = rate_limit(GENERAL_POLICY)
