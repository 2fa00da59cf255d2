# models/user.py
from __future__ import annotations
from db import db
from sqlalchemy.sql import func

# BIGINT on MySQL, INTEGER on SQLite so autoincrement keeps working
ID_TYPE = db.BigInteger().with_variant(db.Integer, "sqlite")


class User(db.Model):
    __tablename__ = "users"

    id           = db.Column(ID_TYPE, primary_key=True, autoincrement=True)
    username     = db.Column(db.String(20), nullable=False, unique=True, index=True)
    email        = db.Column(db.String(100), nullable=False, unique=True, index=True)   # always lowercase
    password_hash = db.Column(db.String(255), nullable=False, default="")               # "" for Google-only accounts
    profile_pic  = db.Column(db.String(512), nullable=True)
    google_id    = db.Column(db.String(64), nullable=True, unique=True)

    created_at   = db.Column(db.DateTime, server_default=func.now(), nullable=False)
    updated_at   = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # ── Helpers ─────────────────────────────────────────────────────────────
    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def to_dict(self) -> dict:
        """Public shape of the account; the password hash never leaves the server."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "profilePic": self.profile_pic,
            "hasPassword": self.has_password,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"
