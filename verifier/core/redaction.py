from __future__ import annotations

import re
from typing import Any


MASK = "[REDACTED]"

_BEARER = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE)
_JWT = re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+(?:\.[A-Za-z0-9_-]+)?")
_ASSIGNMENT = re.compile(r"\b(password|token)(\s*[:=]\s*)\S+", re.IGNORECASE)

# compared after dropping underscores and lowercasing
_SECRET_KEYS = frozenset({"password", "access", "refresh", "accesstoken", "refreshtoken", "authorization"})


def redact_text(value: str) -> str:
    """Mask bearer tokens, JWTs and ``password=``/``token:`` assignments."""
    value = _BEARER.sub(rf"\1{MASK}", value)
    value = _JWT.sub(MASK, value)
    return _ASSIGNMENT.sub(rf"\1\2{MASK}", value)


def redact_data(value: Any) -> Any:
    """Copy of a request or status payload that is safe to dump in debug output.

    Notes:
        Values stored under credential keys (login passwords, the access and
        refresh tokens of a login response) are masked whole; every other
        string only has its embedded secrets masked.
    """
    if isinstance(value, dict):
        return {key: MASK if _is_secret_key(key) else redact_data(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact_data(item) for item in value]
    if isinstance(value, str):
        return redact_text(value)
    return value


def _is_secret_key(key: object) -> bool:
    return str(key).replace("_", "").lower() in _SECRET_KEYS
