"""In-memory per-client attempt window limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every check-and-increment happens under one lock, so parallel
  attempts for the same key can never undercount.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitDecision,
    RateLimitResult,
)


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryWindowRateLimiter(AbstractRateLimiter):
    """Counts attempts per key inside a window that opens on the first attempt.

    State per key: ``NoWindow -> Active(count <= limit) -> Active(denying)``,
    back to ``NoWindow`` once ``window_seconds`` have elapsed since the window
    opened. Expired windows are replaced lazily on the next attempt; stale
    keys are also purged every ``purge_every`` calls to bound memory.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        purge_every: int = 1024,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of allowed attempts per window.
            window_seconds: Window length in seconds.
            clock: Time source returning UNIX time in seconds.
            purge_every: Sweep expired windows after this many attempts.

        Raises:
            ValueError: If limit, window_seconds or purge_every are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if purge_every < 1:
            raise ValueError("purge_every must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._purge_every = purge_every
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}
        self._calls_since_purge = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _is_expired(self, state: _WindowState, now: float) -> bool:
        return now - state.window_start >= self._window_seconds

    def check_and_record_attempt(self, key: str, now: float | None = None) -> RateLimitResult:
        """Record one attempt for ``key``.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        if now is None:
            now = self._clock()

        with self._lock:
            self._maybe_purge_locked(now)

            state = self._state_by_key.get(key)
            if state is None or self._is_expired(state, now):
                state = _WindowState(window_start=now, count=0)
                self._state_by_key[key] = state

            state.count += 1
            reset_at = state.window_start + self._window_seconds
            remaining = max(0, self._limit - state.count)

            if state.count <= self._limit:
                return RateLimitResult(
                    decision=RateLimitDecision.ALLOW,
                    limit=self._limit,
                    attempts=state.count,
                    remaining=remaining,
                    reset_at=int(math.ceil(reset_at)),
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                decision=RateLimitDecision.DENY,
                limit=self._limit,
                attempts=state.count,
                remaining=0,
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
            )

    def reset(self, key: str) -> None:
        with self._lock:
            self._state_by_key.pop(key, None)

    def purge_expired(self, now: float | None = None) -> int:
        """Drop every expired window and return how many were removed."""
        if now is None:
            now = self._clock()
        with self._lock:
            return self._purge_locked(now)

    def _maybe_purge_locked(self, now: float) -> None:
        self._calls_since_purge += 1
        if self._calls_since_purge >= self._purge_every:
            self._purge_locked(now)

    def _purge_locked(self, now: float) -> int:
        self._calls_since_purge = 0
        expired = [k for k, s in self._state_by_key.items() if self._is_expired(s, now)]
        for key in expired:
            del self._state_by_key[key]
        return len(expired)
