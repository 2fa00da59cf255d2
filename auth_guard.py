# auth_guard.py
from __future__ import annotations

from functools import wraps

from flask import request, g, current_app

from errors import Unauthorized

__all__ = ["require_auth"]


def require_auth(f):
    """
    Usage:
      @require_auth     -> any signed-in user; g.user is the loaded account
    Missing, malformed, expired or orphaned tokens all raise Unauthorized,
    which the app's error handler renders as a 401.
    """
    @wraps(f)
    def wrapped(*args, **kwargs):
        auth = request.headers.get("Authorization", "")
        if not auth.startswith("Bearer "):
            raise Unauthorized("Missing token")

        token = auth.split(" ", 1)[1].strip()
        flow = current_app.extensions["auth_flow"]
        uid = flow.tokens.decode(token)
        user = flow.get_me(uid)

        g.user = user  # type: ignore[attr-defined]
        current_app.logger.info(
            "[guard] %s %s uid=%s user=%s ip=%s",
            request.method,
            request.path,
            user.id,
            user.username,
            request.remote_addr,
        )
        return f(*args, **kwargs)

    return wrapped
