"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import re
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_case(key: str) -> str:
    """Convert ``referralCode`` style keys to ``referral_code``."""

    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON object with snake_case keys or raise a 400 error.

    Clients may send ``camelCase`` or ``snake_case`` keys; when both spellings
    of a key are present the snake_case one wins. String values are stripped of
    surrounding whitespace except for password fields.
    """

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=False)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    normalized: dict = {}
    for key, value in data.items():
        name = snake_case(str(key))
        if name in normalized and name != key:
            continue
        if isinstance(value, str) and "password" not in name:
            value = value.strip()
        normalized[name] = value

    if required_keys:
        missing = [key for key in required_keys if normalized.get(key) in (None, "")]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return normalized
