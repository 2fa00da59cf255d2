# backend/routes/auth.py
from __future__ import annotations

import time
from flask import Blueprint, request, jsonify, g, current_app

from auth_guard import require_auth

__all__ = ["auth_bp"]
auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _flow():
    return current_app.extensions["auth_flow"]


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _identity_response(user, token, status: int = 200):
    return jsonify(success=True, user=user.to_dict(), token=token), status


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
@auth_bp.after_request
def add_no_store(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


# -------------------------------------------------------------------
# Health
# -------------------------------------------------------------------
@auth_bp.route("/ping", methods=["GET"])
def ping():
    return jsonify(ok=True, ts=time.time()), 200


# -------------------------------------------------------------------
# Register / login / me
# -------------------------------------------------------------------
@auth_bp.route("/register", methods=["POST"])
def register():
    data = _body()
    user, token = _flow().register(data.get("username"), data.get("email"), data.get("password"))
    return _identity_response(user, token, 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    data = _body()
    user, token = _flow().login(data.get("email"), data.get("password"))
    return _identity_response(user, token)


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    return jsonify(success=True, user=g.user.to_dict()), 200


# -------------------------------------------------------------------
# Google sign-in
# -------------------------------------------------------------------
@auth_bp.route("/google", methods=["POST"])
def google():
    data = _body()
    user, token = _flow().google_sign_in(data.get("token"))
    return _identity_response(user, token)


# -------------------------------------------------------------------
# Forgot password -> validate code -> reset
# -------------------------------------------------------------------
@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    message = _flow().forgot_password(_body().get("email"))
    return jsonify(success=True, message=message), 200


@auth_bp.route("/validate-otp", methods=["POST"])
def validate_otp():
    data = _body()
    _flow().validate_otp(data.get("email"), data.get("code"))
    return jsonify(success=True, valid=True, message="OTP validated"), 200


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = _body()
    _flow().reset_password(
        data.get("email"),
        data.get("code"),
        data.get("newPassword"),
        data.get("confirmPassword"),
    )
    return jsonify(success=True, message="Password reset successfully"), 200
