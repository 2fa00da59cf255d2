# tests/test_routes.py
from datetime import datetime, timedelta, timezone

import jwt

from errors import DeliveryError


def _register(client, username="erin_1", email="erin@example.com", password="pass1234"):
    return client.post("/auth/register", json={"username": username, "email": email, "password": password})


def test_health_and_ping(client):
    assert client.get("/").get_json() == {"status": "ok"}
    resp = client.get("/auth/ping")
    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True
    assert resp.headers["Cache-Control"] == "no-store"


def test_register_returns_201_with_user_and_token(client):
    resp = _register(client)
    body = resp.get_json()

    assert resp.status_code == 201
    assert body["success"] is True
    assert body["user"]["username"] == "erin_1"
    assert body["user"]["email"] == "erin@example.com"
    assert "password_hash" not in body["user"] and "password" not in body["user"]
    assert body["token"]


def test_register_duplicate_is_409_with_field(client):
    _register(client)
    resp = _register(client, username="erin_2", email="ERIN@example.com")

    assert resp.status_code == 409
    assert resp.get_json() == {
        "success": False,
        "error": "Email already registered",
        "kind": "DuplicateIdentity",
        "field": "email",
    }


def test_register_validation_errors(client):
    resp = _register(client, username="no")
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "InvalidFormat"

    resp = _register(client, password="letters")
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "WeakPassword"

    resp = client.post("/auth/register", json={"username": "erin_1"})
    assert resp.get_json()["kind"] == "MissingField"

    resp = client.post("/auth/register", data="not json", content_type="text/plain")
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "MissingField"


def test_login_and_me(client):
    _register(client)
    resp = client.post("/auth/login", json={"email": "Erin@Example.com", "password": "pass1234"})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["username"] == "erin_1"


def test_login_failure_shape_does_not_leak_existence(client):
    _register(client)
    wrong = client.post("/auth/login", json={"email": "erin@example.com", "password": "nope1234"})
    ghost = client.post("/auth/login", json={"email": "ghost@example.com", "password": "pass1234"})

    assert wrong.status_code == ghost.status_code == 401
    assert wrong.get_json() == ghost.get_json()


def test_me_requires_valid_token(client, app):
    assert client.get("/auth/me").status_code == 401

    bad = client.get("/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert bad.status_code == 401
    assert bad.get_json()["kind"] == "Unauthorized"

    expired = jwt.encode(
        {"user_id": 1, "exp": datetime.now(timezone.utc) - timedelta(seconds=5)},
        app.config["SECRET_KEY"],
        algorithm="HS256",
    )
    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Token has expired"


def test_me_for_deleted_account(client, app):
    token = app.extensions["auth_flow"].tokens.issue(9999)
    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_token_carries_seven_day_expiry(client, app):
    token = _register(client).get_json()["token"]
    payload = jwt.decode(token, app.config["SECRET_KEY"], algorithms=["HS256"])

    assert payload["exp"] - payload["iat"] == 7 * 24 * 3600


def test_google_sign_in(client, google):
    google.identities["good"] = {"email": "gus@gmail.com", "name": "Gus", "picture": None, "sub": "g-9"}

    first = client.post("/auth/google", json={"token": "good"}).get_json()
    second = client.post("/auth/google", json={"token": "good"}).get_json()

    assert first["success"] and second["success"]
    assert first["user"]["id"] == second["user"]["id"]
    assert first["user"]["hasPassword"] is False

    google.identities["moved"] = {"email": "gus.new@gmail.com", "name": "Gus", "picture": None, "sub": "g-9"}
    moved = client.post("/auth/google", json={"token": "moved"})
    assert moved.status_code == 200
    assert moved.get_json()["user"]["id"] == first["user"]["id"]

    bad = client.post("/auth/google", json={"token": "bad"})
    assert bad.status_code == 400
    assert bad.get_json()["kind"] == "OAuthVerificationFailed"


def test_full_reset_flow_over_http(client, mailer, clock):
    _register(client)

    known = client.post("/auth/forgot-password", json={"email": "erin@example.com"})
    unknown = client.post("/auth/forgot-password", json={"email": "nobody@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.get_json() == unknown.get_json()

    code = mailer.last_code
    resp = client.post("/auth/validate-otp", json={"email": "erin@example.com", "code": code})
    assert resp.get_json() == {"success": True, "valid": True, "message": "OTP validated"}

    resp = client.post("/auth/reset-password", json={
        "email": "erin@example.com", "code": code, "newPassword": "fresh123", "confirmPassword": "fresh124",
    })
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "PasswordMismatch"

    resp = client.post("/auth/reset-password", json={
        "email": "erin@example.com", "code": code, "newPassword": "fresh123", "confirmPassword": "fresh123",
    })
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True

    old = client.post("/auth/login", json={"email": "erin@example.com", "password": "pass1234"})
    new = client.post("/auth/login", json={"email": "erin@example.com", "password": "fresh123"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_expired_code_over_http(client, mailer, clock):
    _register(client)
    client.post("/auth/forgot-password", json={"email": "erin@example.com"})
    clock.advance(minutes=6)

    resp = client.post("/auth/validate-otp", json={"email": "erin@example.com", "code": mailer.last_code})
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "InvalidOrExpiredOTP"


def test_forgot_password_bad_email_and_delivery_failure(client, mailer):
    resp = client.post("/auth/forgot-password", json={"email": "broken"})
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "InvalidEmail"

    _register(client)
    mailer.fail_with = DeliveryError()
    resp = client.post("/auth/forgot-password", json={"email": "erin@example.com"})
    assert resp.status_code == 502
    assert resp.get_json()["kind"] == "DeliveryError"


def test_unknown_route_is_json_404(client):
    resp = client.get("/auth/nope")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Not Found"


def test_purge_otps_command(app, clock):
    flow = app.extensions["auth_flow"]
    flow.otps.create("erin@example.com", "111111", clock())
    clock.advance(minutes=10)

    result = app.test_cli_runner().invoke(args=["purge-otps"])

    assert result.exit_code == 0
    assert "Purged 1 expired reset code(s)." in result.output


def test_init_db_command_is_idempotent(app):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["init-db"])
    second = runner.invoke(args=["init-db"])

    assert first.exit_code == second.exit_code == 0
    assert "Database tables created." in second.output
    assert _register(app.test_client()).status_code == 201
