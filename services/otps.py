# services/otps.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from db import db
from models.password_otp import PasswordOtp
from utils.security import hash_otp_code

__all__ = ["OtpStore", "as_utc"]


def as_utc(dt: datetime) -> datetime:
    # Treat naive datetimes (SQLite, MySQL DATETIME) as UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class OtpStore:
    """
    Password-reset codes, keyed by email. Only a peppered digest of each code
    is stored; lookups hash the candidate and match on (email, digest).
    """

    def __init__(self, pepper: str):
        self.pepper = pepper

    def create(self, email: str, code: str, created_at: datetime) -> PasswordOtp:
        rec = PasswordOtp(
            email=email.lower(),
            code_hash=hash_otp_code(code, self.pepper),
            created_at=as_utc(created_at).replace(tzinfo=None),
        )
        db.session.add(rec)
        db.session.commit()
        return rec

    def find_match(self, email: str, code: str) -> Optional[PasswordOtp]:
        """Most recent row for this email whose code matches exactly."""
        return (
            PasswordOtp.query
            .filter_by(email=email.lower(), code_hash=hash_otp_code(code, self.pepper))
            .order_by(PasswordOtp.id.desc())
            .first()
        )

    def invalidate_for(self, email: str) -> int:
        n = PasswordOtp.query.filter_by(email=email.lower()).delete(synchronize_session=False)
        db.session.commit()
        return n

    def delete(self, rec: PasswordOtp) -> None:
        db.session.delete(rec)
        db.session.commit()

    def count_for(self, email: str) -> int:
        return PasswordOtp.query.filter_by(email=email.lower()).count()

    def purge_older_than(self, ttl: timedelta, now: datetime) -> int:
        cutoff = (as_utc(now) - ttl).replace(tzinfo=None)
        n = PasswordOtp.query.filter(PasswordOtp.created_at < cutoff).delete(synchronize_session=False)
        db.session.commit()
        return n
