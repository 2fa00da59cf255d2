# services/google_identity.py
from __future__ import annotations

from typing import Any, Dict

from flask import current_app
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from errors import OAuthVerificationFailed

__all__ = ["verify_identity_token"]


def verify_identity_token(token: str) -> Dict[str, Any]:
    """
    Verify a Google ID token (signature, audience, expiry) and return the
    claims the auth flow uses: email, name, picture, sub.
    Raises OAuthVerificationFailed on any rejection.
    """
    client_id = current_app.config.get("GOOGLE_CLIENT_ID")
    if not client_id:
        current_app.logger.error("[google] GOOGLE_CLIENT_ID is not configured")
        raise OAuthVerificationFailed("Google sign-in is not configured")

    try:
        id_info = id_token.verify_oauth2_token(token, google_requests.Request(), client_id)
    except (ValueError, GoogleAuthError) as e:
        current_app.logger.warning("[google] token rejected: %s", e)
        raise OAuthVerificationFailed() from e

    email = id_info.get("email")
    if not email or id_info.get("email_verified") is False:
        raise OAuthVerificationFailed("Google account has no verified email")

    return {
        "email": email,
        "name": id_info.get("name") or email.split("@", 1)[0],
        "picture": id_info.get("picture"),
        "sub": id_info.get("sub"),
    }
