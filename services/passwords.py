"""Password rules and temporary password generation."""

from __future__ import annotations

import secrets
import string
from typing import Optional

from .errors import InvalidRequestError

MIN_PASSWORD_LENGTH = 8
_SPECIALS = "!@#$%^&*"


def require_password(password: Optional[str]) -> str:
    """Return the password or raise if it is missing or too short."""

    password = password or ""
    if not password.strip():
        raise InvalidRequestError("Password is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidRequestError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )
    return password


def generate_temporary_password(length: int = 12) -> str:
    """Random password with at least one upper, lower, digit, and special character."""

    length = max(length, MIN_PASSWORD_LENGTH)
    pools = [string.ascii_uppercase, string.ascii_lowercase, string.digits, _SPECIALS]
    chars = [secrets.choice(pool) for pool in pools]
    alphabet = "".join(pools)
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
