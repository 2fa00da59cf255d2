# client/state.py
"""
Client-side mirror of the auth server: a pure `reduce(state, action)` plus an
explicitly constructed `AuthStore` that owns a storage backend.

Action types follow `auth/<op>/<phase>` for server calls
(phase = pending | fulfilled | rejected) and `auth/<name>` for local actions.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional

__all__ = [
    "AuthState",
    "Action",
    "AuthStore",
    "reduce",
    "OPS",
    "IDENTITY_OPS",
    "pending",
    "fulfilled",
    "rejected",
    "set_user",
    "logout",
    "clear_reset_flags",
]

log = logging.getLogger(__name__)

OPS = ("register", "login", "getMe", "forgotPassword", "validateOTP", "resetPassword", "google")
# Server calls whose success carries {user, token}
IDENTITY_OPS = ("register", "login", "google")

SET_USER = "auth/setUser"
LOGOUT = "auth/logout"
CLEAR_RESET_FLAGS = "auth/clearResetFlags"


@dataclass(frozen=True)
class AuthState:
    user: Optional[dict] = None
    token: Optional[str] = None
    loading: bool = False
    error: Optional[str] = None
    reset_success: bool = False
    otp_sent: bool = False
    otp_validated: bool = False


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


def pending(op: str) -> Action:
    return Action(f"auth/{op}/pending")


def fulfilled(op: str, payload: Any = None) -> Action:
    return Action(f"auth/{op}/fulfilled", payload)


def rejected(op: str, message: str) -> Action:
    return Action(f"auth/{op}/rejected", message)


def set_user(user: dict, token: str) -> Action:
    return Action(SET_USER, {"user": user, "token": token})


def logout() -> Action:
    return Action(LOGOUT)


def clear_reset_flags() -> Action:
    return Action(CLEAR_RESET_FLAGS)


def _split(action_type: str):
    parts = action_type.split("/")
    if len(parts) == 3 and parts[0] == "auth":
        return parts[1], parts[2]
    return None, None


def reduce(state: AuthState, action: Action) -> AuthState:
    """Pure transition; unknown actions return `state` unchanged."""
    if action.type == SET_USER:
        return replace(state, user=action.payload["user"], token=action.payload["token"])
    if action.type == LOGOUT:
        return AuthState()
    if action.type == CLEAR_RESET_FLAGS:
        return replace(state, reset_success=False, otp_sent=False, otp_validated=False, error=None)

    op, phase = _split(action.type)
    if op not in OPS:
        return state

    if phase == "pending":
        if op == "forgotPassword":
            return replace(state, loading=True, error=None, otp_sent=False)
        return replace(state, loading=True, error=None)

    if phase == "rejected":
        if op == "getMe":
            return replace(state, loading=False, error=action.payload, user=None, token=None)
        return replace(state, loading=False, error=action.payload)

    if phase == "fulfilled":
        payload = action.payload or {}
        if op in IDENTITY_OPS:
            return replace(state, loading=False, user=payload.get("user"), token=payload.get("token"))
        if op == "getMe":
            return replace(state, loading=False, user=payload.get("user"))
        if op == "forgotPassword":
            return replace(state, loading=False, otp_sent=True)
        if op == "validateOTP":
            return replace(state, loading=False, otp_validated=True)
        if op == "resetPassword":
            return replace(state, loading=False, reset_success=True, otp_sent=False, otp_validated=False)

    return state


class AuthStore:
    """
    Holds the current AuthState, seeded from `storage` on construction.
    Successful identity-bearing actions write {token, user} back; logout and
    a rejected getMe remove them.
    """

    def __init__(self, storage):
        self.storage = storage
        self._listeners: List[Callable[[AuthState], None]] = []
        self.state = self._initial_state()

    def _initial_state(self) -> AuthState:
        token = self.storage.get_item("token")
        raw_user = self.storage.get_item("user")
        user = None
        if raw_user:
            try:
                user = json.loads(raw_user)
            except ValueError:
                log.warning("[store] discarding unreadable persisted user")
        return AuthState(user=user if isinstance(user, dict) else None, token=token or None)

    def subscribe(self, listener: Callable[[AuthState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> AuthState:
        self.state = reduce(self.state, action)
        self._persist(action)
        for listener in list(self._listeners):
            listener(self.state)
        return self.state

    def _persist(self, action: Action) -> None:
        op, phase = _split(action.type)
        if action.type == SET_USER or (op in IDENTITY_OPS and phase == "fulfilled"):
            if self.state.token:
                self.storage.set_item("token", self.state.token)
            self.storage.set_item("user", json.dumps(self.state.user))
        elif action.type == LOGOUT or (op == "getMe" and phase == "rejected"):
            self._clear()

    def _clear(self) -> None:
        self.storage.remove_item("token")
        self.storage.remove_item("user")

    def teardown(self) -> None:
        """Forget the session entirely: state and persisted snapshot."""
        self._clear()
        self.state = AuthState()
        self._listeners.clear()
