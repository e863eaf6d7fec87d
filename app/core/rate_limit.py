"""Login rate limiting dependency for FastAPI routes.

Strategy:
- One attempt window per client address, opened by the first attempt.
- The dependency runs *before* the login handler, so every attempt is
  counted atomically, including ones that arrive in parallel.
- A successful login resets the client's window; only failed attempts
  accumulate towards the ceiling.
"""

from __future__ import annotations

import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitedAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None


def get_login_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide login limiter.

    Rebuilt when the configuration changes (primarily in tests).
    """

    global _limiter, _limiter_config

    config = (
        settings.app.login_rate_limit_attempts,
        settings.app.login_rate_limit_window_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryWindowRateLimiter(
            limit=settings.app.login_rate_limit_attempts,
            window_seconds=settings.app.login_rate_limit_window_seconds,
        )
        _limiter_config = config

    return _limiter


def client_key(request: Request) -> str:
    """Identify the client by address, honouring X-Forwarded-For when trusted."""

    if settings.app.trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return f"ip:{first}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


async def enforce_login_rate_limit(request: Request) -> str | None:
    """FastAPI dependency recording one login attempt.

    Returns:
        The limiter key so the handler can reset it after a successful login,
        or None when limiting is disabled.

    Raises:
        RateLimitedAppError: When the client exceeded the attempt ceiling.
    """

    if not settings.app.login_rate_limit_enabled:
        return None

    key = client_key(request)
    result = get_login_rate_limiter().check_and_record_attempt(key)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": hash_identifier(key),
                "limit": result.limit,
                "attempts": result.attempts,
                "remaining": result.remaining,
            },
        )
        return key

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": hash_identifier(key),
            "limit": result.limit,
            "attempts": result.attempts,
            "window_s": settings.app.login_rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    raise RateLimitedAppError(
        details={
            "retry_after": retry_after,
            "context": {"limit": result.limit, "reset_at": result.reset_at},
        }
    )


def reset_login_attempts(key: str | None) -> None:
    if key is not None:
        get_login_rate_limiter().reset(key)
