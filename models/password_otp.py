# models/password_otp.py
from __future__ import annotations
from db import db
from models.user import ID_TYPE


class PasswordOtp(db.Model):
    """
    A password-reset code sent to an email address.
    Keyed by email, not user id: the row is only ever written for an existing
    account, but lookups happen before the account is loaded.
    """
    __tablename__ = "password_otps"

    id          = db.Column(ID_TYPE, primary_key=True, autoincrement=True)
    email       = db.Column(db.String(100), nullable=False, index=True)   # lowercase
    code_hash   = db.Column(db.String(64), nullable=False)                # sha256 hex string
    created_at  = db.Column(db.DateTime, nullable=False)                  # UTC, set by the service clock

    __table_args__ = (
        db.Index("ix_password_otps_email_code", "email", "code_hash"),
    )

    def __repr__(self) -> str:
        return f"<PasswordOtp id={self.id} email={self.email!r} created_at={self.created_at}>"
