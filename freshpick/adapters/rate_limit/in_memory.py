"""In-memory fixed-window rate limiter.

Each key maps to ``(count, reset_at)``. The window for a key opens on its
first request and lasts ``window_seconds``; once ``reset_at`` has passed the
next request opens a fresh window.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Expired keys are purged lazily so idle clients do not accumulate.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from freshpick.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    count: int
    reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        purge_interval_seconds: float = 60.0,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.
            purge_interval_seconds: Minimum delay between expired-key sweeps.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._purge_interval = purge_interval_seconds
        self._last_purge = clock()
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _get_or_reset_state(self, key: str, now: float) -> _WindowState:
        """Get the live state for key, opening a new window once expired."""
        state = self._state_by_key.get(key)
        if state is None or now >= state.reset_at:
            state = _WindowState(count=0, reset_at=now + self._window_seconds)
            self._state_by_key[key] = state
        return state

    def _purge_expired_locked(self, now: float) -> None:
        if now - self._last_purge < self._purge_interval:
            return
        expired = [k for k, s in self._state_by_key.items() if now >= s.reset_at]
        for key in expired:
            del self._state_by_key[key]
        self._last_purge = now

    def _build_allowed_result(self, *, remaining: int, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: float, remaining: int, reset_at: float) -> RateLimitResult:
        retry_after = max(0, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=retry_after,
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        This method both checks the current window usage and mutates the state
        if the request is allowed.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._purge_expired_locked(now)
            state = self._get_or_reset_state(key, now)

            if state.count + cost <= self._limit:
                state.count += cost
                remaining = max(0, self._limit - state.count)
                return self._build_allowed_result(remaining=remaining, reset_at=state.reset_at)

            remaining = max(0, self._limit - state.count)
            return self._build_blocked_result(now=now, remaining=remaining, reset_at=state.reset_at)

    def reset(self, key: str | None = None) -> None:
        """Forget one key, or every key when ``key`` is None."""
        with self._lock:
            if key is None:
                self._state_by_key.clear()
            else:
                self._state_by_key.pop(key, None)
