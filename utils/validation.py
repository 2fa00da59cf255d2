# utils/validation.py
from __future__ import annotations

import re

from errors import InvalidFormat

__all__ = [
    "sanitize",
    "normalize_email",
    "is_valid_email",
    "is_valid_username",
    "is_strong_password",
    "normalize_otp_code",
    "EMAIL_MAX_LEN",
]

EMAIL_MAX_LEN = 100
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

_EMAIL_RE    = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_USERNAME_RE = re.compile(r"[A-Za-z0-9_]{3,20}")

# Leading characters a document-store query layer would read as an operator
_OPERATOR_PREFIXES = ("$",)


def sanitize(value, field: str) -> str:
    """
    Strip surrounding whitespace. Non-strings come back as "" so callers can
    treat them as missing. Operator-looking values are refused outright.
    """
    if not isinstance(value, str):
        return ""
    value = value.strip()
    if value.startswith(_OPERATOR_PREFIXES):
        raise InvalidFormat(f"Invalid {field}", field=field)
    return value


def normalize_email(value: str) -> str:
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(value) and len(value) <= EMAIL_MAX_LEN and _EMAIL_RE.fullmatch(value) is not None


def is_valid_username(value: str) -> bool:
    return bool(value) and _USERNAME_RE.fullmatch(value) is not None


def is_strong_password(value) -> bool:
    if not isinstance(value, str):
        return False
    return (
        PASSWORD_MIN_LEN <= len(value) <= PASSWORD_MAX_LEN
        and re.search(r"[A-Za-z]", value) is not None
        and re.search(r"[0-9]", value) is not None
    )


def normalize_otp_code(value) -> str | None:
    """
    Codes are 6-digit strings. Clients that send the code as a JSON number
    lose leading zeros, so integral numbers are padded back.

    Returns "" when no code was sent and None when the value cannot be a code.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int):
        return f"{value:06d}" if value >= 0 else None
    if not isinstance(value, str):
        return None
    return value.strip()
