"""Rate limiter interfaces.

Routes depend on this abstraction so the per-process store can be swapped
for a shared one when the API runs on several replicas.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of consuming budget for one key.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the key's window expires.
        retry_after_seconds: Seconds to wait before retrying, only when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Namespaced client identifier (e.g., "auth:203.0.113.7").
            cost: Units to consume (default 1).
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str | None = None) -> None:
        """Drop the state for ``key``, or for every key."""
        raise NotImplementedError
