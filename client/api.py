# client/api.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from client.state import AuthStore, fulfilled, pending, rejected

__all__ = ["AuthClient", "DEFAULT_ERRORS", "friendly_error"]

log = logging.getLogger(__name__)

# Shown when the server gives no usable message
DEFAULT_ERRORS = {
    "register": "Registration failed",
    "login": "Login failed",
    "getMe": "Get user failed",
    "forgotPassword": "Forgot password failed",
    "validateOTP": "Invalid or expired OTP",
    "resetPassword": "Password reset failed",
    "google": "Google login failed",
}

_DUPLICATE_MESSAGES = {
    "username": "Username is already taken",
    "email": "Email is already registered",
}

TIMEOUT = (3.05, 10)


def friendly_error(body: Any, default: str) -> str:
    """Message to show for an error response body."""
    if not isinstance(body, dict):
        return default
    if body.get("kind") == "DuplicateIdentity":
        return _DUPLICATE_MESSAGES.get(body.get("field"), "Account already exists")
    return body.get("error") or body.get("message") or default


class AuthClient:
    """
    Calls the /auth endpoints and mirrors every outcome into `store` as
    pending -> fulfilled | rejected. Each call returns the response body on
    success and None on failure; the failure text lands in store.state.error.
    """

    def __init__(self, base_url: str, store: AuthStore, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.session = session or requests.Session()

    def _call(self, op: str, method: str, path: str, body: Optional[Dict[str, Any]] = None,
              token: Optional[str] = None) -> Optional[dict]:
        self.store.dispatch(pending(op))
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            resp = self.session.request(method, self.base_url + path, json=body, headers=headers, timeout=TIMEOUT)
        except requests.RequestException as e:
            log.warning("[client] %s %s failed: %s", method, path, e)
            self.store.dispatch(rejected(op, DEFAULT_ERRORS[op]))
            return None

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.ok:
            self.store.dispatch(rejected(op, friendly_error(data, DEFAULT_ERRORS[op])))
            return None

        self.store.dispatch(fulfilled(op, data))
        return data

    # ── Identity ────────────────────────────────────────────────────────────
    def register(self, username: str, email: str, password: str):
        return self._call("register", "POST", "/auth/register",
                          {"username": username, "email": email, "password": password})

    def login(self, email: str, password: str):
        return self._call("login", "POST", "/auth/login", {"email": email, "password": password})

    def google(self, id_token: str):
        return self._call("google", "POST", "/auth/google", {"token": id_token})

    def get_me(self, token: Optional[str] = None):
        return self._call("getMe", "GET", "/auth/me", token=token or self.store.state.token)

    # ── Password reset ──────────────────────────────────────────────────────
    def forgot_password(self, email: str):
        return self._call("forgotPassword", "POST", "/auth/forgot-password", {"email": email})

    def validate_otp(self, email: str, code: str):
        return self._call("validateOTP", "POST", "/auth/validate-otp", {"email": email, "code": code})

    def reset_password(self, email: str, code: str, new_password: str, confirm_password: str):
        return self._call("resetPassword", "POST", "/auth/reset-password", {
            "email": email,
            "code": code,
            "newPassword": new_password,
            "confirmPassword": confirm_password,
        })
