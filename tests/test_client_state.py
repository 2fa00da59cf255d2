# tests/test_client_state.py
import json

from client.state import (
    AuthState,
    AuthStore,
    clear_reset_flags,
    fulfilled,
    logout,
    pending,
    reduce,
    rejected,
    set_user,
)
from client.storage import JsonFileStorage, MemoryStorage

USER = {"id": 1, "username": "erin_1", "email": "erin@example.com"}


def test_pending_fulfilled_rejected():
    s = reduce(AuthState(error="old"), pending("login"))
    assert s.loading is True and s.error is None

    s = reduce(s, fulfilled("login", {"user": USER, "token": "t1"}))
    assert s == AuthState(user=USER, token="t1")

    s = reduce(s, pending("login"))
    s = reduce(s, rejected("login", "Invalid email or password"))
    assert s.loading is False
    assert s.error == "Invalid email or password"
    assert s.token == "t1"


def test_reset_flow_flags():
    s = reduce(AuthState(), fulfilled("forgotPassword", {"success": True}))
    assert s.otp_sent
    s = reduce(s, fulfilled("validateOTP", {"valid": True}))
    assert s.otp_validated
    s = reduce(s, fulfilled("resetPassword", {"success": True}))
    assert s.reset_success and not s.otp_sent and not s.otp_validated

    s = reduce(s, clear_reset_flags())
    assert not (s.reset_success or s.otp_sent or s.otp_validated)


def test_repeated_forgot_password_clears_otp_sent_while_loading():
    s = reduce(AuthState(), fulfilled("forgotPassword", {"success": True}))
    s = reduce(s, pending("forgotPassword"))
    assert s.loading is True
    assert s.otp_sent is False


def test_get_me_rejected_drops_identity():
    s = AuthState(user=USER, token="t1")
    s = reduce(s, rejected("getMe", "Not authorized"))
    assert s.user is None and s.token is None
    assert s.error == "Not authorized"


def test_reduce_is_pure_and_ignores_unknown():
    s = AuthState(user=USER, token="t1")
    assert reduce(s, pending("somethingElse")) is s
    reduce(s, logout())
    assert s.token == "t1"


def test_store_seeds_from_storage():
    storage = MemoryStorage({"token": "t0", "user": json.dumps(USER)})
    store = AuthStore(storage)
    assert store.state.token == "t0"
    assert store.state.user == USER


def test_store_ignores_corrupt_user_snapshot():
    store = AuthStore(MemoryStorage({"token": "t0", "user": "{broken"}))
    assert store.state.user is None
    assert store.state.token == "t0"


def test_store_persists_and_clears():
    storage = MemoryStorage()
    store = AuthStore(storage)

    store.dispatch(fulfilled("register", {"user": USER, "token": "t1"}))
    assert storage.get_item("token") == "t1"
    assert json.loads(storage.get_item("user")) == USER

    store.dispatch(logout())
    assert storage.get_item("token") is None
    assert storage.get_item("user") is None
    assert store.state == AuthState()


def test_store_clears_on_unauthorized_get_me_and_set_user_persists():
    storage = MemoryStorage()
    store = AuthStore(storage)
    store.dispatch(set_user(USER, "t2"))
    assert storage.get_item("token") == "t2"

    store.dispatch(rejected("getMe", "Token has expired"))
    assert storage.get_item("token") is None


def test_store_notifies_subscribers():
    store = AuthStore(MemoryStorage())
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.dispatch(pending("login"))
    unsubscribe()
    store.dispatch(pending("login"))

    assert len(seen) == 1 and seen[0].loading


def test_teardown_clears_snapshot(tmp_path):
    storage = JsonFileStorage(tmp_path / "auth.json")
    store = AuthStore(storage)
    store.dispatch(fulfilled("login", {"user": USER, "token": "t3"}))

    assert AuthStore(JsonFileStorage(tmp_path / "auth.json")).state.token == "t3"

    store.teardown()
    assert store.state == AuthState()
    assert AuthStore(JsonFileStorage(tmp_path / "auth.json")).state.token is None
