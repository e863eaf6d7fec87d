"""Rate limiting adapters.

A small abstraction layer so login throttling can start with an in-memory
limiter and later move to a shared store without changing the API layer.
"""

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitDecision,
    RateLimitResult,
)
from app.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryWindowRateLimiter",
    "RateLimitDecision",
    "RateLimitResult",
]
