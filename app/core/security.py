"""Password hashing helpers (bcrypt)."""

from __future__ import annotations

import bcrypt

# Compared against when an account does not exist, so a failed login costs
# the same whether or not the email is registered.
_DUMMY_HASH = bcrypt.hashpw(b"dummy-password", bcrypt.gensalt(rounds=4)).decode()


def hash_password(password: str, *, rounds: int = 12) -> str:
    """Hash ``password`` with bcrypt at the given cost factor."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str | None) -> bool:
    """Constant-time check of ``password`` against a bcrypt hash.

    A missing hash still performs a bcrypt comparison and returns False.
    """
    candidate = (password_hash or _DUMMY_HASH).encode()
    try:
        matched = bcrypt.checkpw(password.encode(), candidate)
    except ValueError:
        # Malformed hash in storage
        return False
    return matched and password_hash is not None
