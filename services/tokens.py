# services/tokens.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from errors import Unauthorized

__all__ = ["TokenIssuer"]


class TokenIssuer:
    """
    Mints and reads the stateless session token: an HS256 JWT carrying the
    user id. There is no server-side record of issued tokens.
    """

    def __init__(self, secret: str, *, ttl: timedelta = timedelta(days=7), algorithm: str = "HS256"):
        if not secret:
            raise ValueError("TokenIssuer needs a non-empty secret")
        self.secret = secret
        self.ttl = ttl
        self.algorithm = algorithm

    def issue(self, user_id: int) -> str:
        now = datetime.now(timezone.utc)
        return jwt.encode(
            {"user_id": int(user_id), "iat": now, "exp": now + self.ttl},
            self.secret,
            algorithm=self.algorithm,
        )

    def decode(self, token: str) -> int:
        """Return the user id inside `token`, or raise Unauthorized."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token has expired")
        except jwt.InvalidTokenError:
            raise Unauthorized("Invalid token")

        uid = payload.get("user_id")
        if not isinstance(uid, int):
            raise Unauthorized("Invalid token")
        return uid
