"""Password hashing and small URL helpers."""

from __future__ import annotations

from urllib.parse import quote_plus

import bcrypt

_COST = 10


def hash_password(password: str) -> str:
    """Return a bcrypt hash of *password*."""
    salt = bcrypt.gensalt(rounds=_COST, prefix=b"2a")
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")


def check_password_hash(password: str, hashed: str) -> bool:
    """Tell whether *password* matches the bcrypt *hashed* value."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def avatar_url(name: str) -> str:
    """Return the generated-avatar path for *name*."""
    return "api/v1/avatar/" + quote_plus(name)