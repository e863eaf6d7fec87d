"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
counter storage can move to a shared store later without touching routes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class RateLimitDecision(str, Enum):
    """Outcome of recording one attempt."""

    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a check-and-record operation.

    Attributes:
        decision: ALLOW or DENY.
        limit: Max attempts per window.
        attempts: Attempts recorded in the current window, including this one.
        remaining: Attempts left in the current window (0 when denied).
        reset_at: UNIX epoch seconds when the current window expires.
        retry_after_seconds: Suggested wait time in seconds when denied.
    """

    decision: RateLimitDecision
    limit: int
    attempts: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None

    @property
    def allowed(self) -> bool:
        return self.decision is RateLimitDecision.ALLOW


class AbstractRateLimiter(ABC):
    """Interface for per-key attempt limiters."""

    @abstractmethod
    def check_and_record_attempt(self, key: str, now: float | None = None) -> RateLimitResult:
        """Record one attempt for ``key`` and decide whether it may proceed.

        Args:
            key: Client identity (e.g. source address).
            now: UNIX time in seconds; defaults to the limiter's clock.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str) -> None:
        """Forget any window held for ``key``."""
        raise NotImplementedError
