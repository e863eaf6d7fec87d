"""Bearer session authentication.

Login issues an opaque random token; the token's SHA-256 digest maps to the
authenticated identity in a TTL store. Protected routes depend on
``require_identity``, which resolves the ``Authorization: Bearer <token>``
header into an ``Identity`` or fails with 401.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Annotated, Callable

from fastapi import Header

from app.core.config import settings
from app.core.errors import AuthenticationAppError, ErrorCode
from app.core.logging import hash_identifier, set_user_id
from app.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated account attached to a request."""

    user_id: str
    email: str
    name: str


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class SessionStore:
    """Issues, resolves and revokes session tokens."""

    def __init__(
        self,
        *,
        ttl_seconds: int,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = SimpleTTLCache(ttl_seconds=ttl_seconds, max_entries=max_entries, clock=clock)

    def __len__(self) -> int:
        return len(self._cache)

    def issue(self, identity: Identity) -> str:
        token = secrets.token_urlsafe(32)
        self._cache.set(_digest(token), identity)
        return token

    def resolve(self, token: str) -> Identity | None:
        if not token:
            return None
        return self._cache.get(_digest(token))

    def revoke(self, token: str) -> bool:
        return self._cache.delete(_digest(token))

    def revoke_user(self, user_id: str) -> int:
        """Invalidate every session of ``user_id``."""
        return self._cache.delete_where(lambda identity: identity.user_id == user_id)


_session_store: SessionStore | None = None
_session_config: tuple[int, int | None] | None = None


def get_session_store() -> SessionStore:
    """Return the process-wide session store.

    Rebuilt when the session configuration changes (primarily in tests).
    """

    global _session_store, _session_config

    config = (settings.app.session_ttl_seconds, settings.app.session_max_entries)
    if _session_store is None or _session_config != config:
        _session_store = SessionStore(
            ttl_seconds=settings.app.session_ttl_seconds,
            max_entries=settings.app.session_max_entries,
        )
        _session_config = config
    return _session_store


def parse_bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization`` header value.

    Examples:
        >>> parse_bearer_token("Bearer abc")
        'abc'
        >>> parse_bearer_token("Basic abc") is None
        True
        >>> parse_bearer_token(None) is None
        True
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _invalid_token(message: str) -> AuthenticationAppError:
    return AuthenticationAppError(
        code=ErrorCode.INVALID_AUTHENTICATION_TOKEN,
        message=message,
        details={"hint": "Log in via /authentication/login and send 'Authorization: Bearer <token>'"},
    )


async def require_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """FastAPI dependency resolving the caller's identity.

    Raises:
        AuthenticationAppError: 401 when the token is missing, unknown or expired.
    """
    token = parse_bearer_token(authorization)
    if token is None:
        logger.warning("auth.missing_token", extra={"authorization_present": bool(authorization)})
        raise _invalid_token("Missing bearer token")

    identity = get_session_store().resolve(token)
    if identity is None:
        logger.warning("auth.invalid_token", extra={"token_hash": hash_identifier(token)})
        raise _invalid_token("Invalid or expired token")

    set_user_id(identity.user_id)
    return identity
