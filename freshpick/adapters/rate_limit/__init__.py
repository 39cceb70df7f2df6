"""Rate limiting adapters.

The HTTP layer depends on ``AbstractRateLimiter`` only, so the in-memory
limiter can later be replaced by a shared store (e.g. Redis) without
touching the routes.
"""

from freshpick.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from freshpick.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
]
