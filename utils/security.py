# utils/security.py
from __future__ import annotations

import hashlib
import secrets

from werkzeug.security import generate_password_hash, check_password_hash

__all__ = ["hash_password", "verify_password", "gen_otp_code", "hash_otp_code"]


def hash_password(raw: str) -> str:
    return generate_password_hash(raw)


def verify_password(raw: str, password_hash: str) -> bool:
    # Google-created accounts carry an empty hash: nothing can match it
    if not password_hash:
        return False
    try:
        return check_password_hash(password_hash, raw or "")
    except (ValueError, TypeError):
        return False


def gen_otp_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def hash_otp_code(code: str, pepper: str) -> str:
    return hashlib.sha256((pepper + code).encode("utf-8")).hexdigest()
