# backend/errors.py
from __future__ import annotations

__all__ = [
    "AuthError",
    "MissingField",
    "InvalidFormat",
    "InvalidEmail",
    "WeakPassword",
    "PasswordMismatch",
    "DuplicateIdentity",
    "InvalidCredentials",
    "Unauthorized",
    "InvalidOrExpiredOTP",
    "UserNotFound",
    "OAuthVerificationFailed",
    "DeliveryError",
]


class AuthError(Exception):
    """
    Base for every failure the auth flow reports to a caller.
    `kind` is the stable name clients switch on, `status` the HTTP code,
    `field` (optional) names the request field the error is about.
    """
    kind = "AuthError"
    status = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None, *, field: str | None = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.message, "kind": self.kind}
        if self.field:
            body["field"] = self.field
        return body


class MissingField(AuthError):
    kind = "MissingField"
    default_message = "Please provide all required fields"


class InvalidFormat(AuthError):
    kind = "InvalidFormat"
    default_message = "Invalid format"


class InvalidEmail(InvalidFormat):
    kind = "InvalidEmail"
    default_message = "Invalid email address"

    def __init__(self, message: str | None = None, *, field: str | None = "email"):
        super().__init__(message, field=field)


class WeakPassword(AuthError):
    kind = "WeakPassword"
    default_message = (
        "Password must be 6-128 characters and contain at least one letter and one number"
    )


class PasswordMismatch(AuthError):
    kind = "PasswordMismatch"
    default_message = "Passwords do not match"


_DUPLICATE_MESSAGES = {
    "email": "Email already registered",
    "username": "Username already taken",
    "google_id": "Google account already linked",
}


class DuplicateIdentity(AuthError):
    kind = "DuplicateIdentity"
    status = 409

    def __init__(self, field: str, message: str | None = None):
        if message is None:
            message = _DUPLICATE_MESSAGES.get(field, "Account already exists")
        super().__init__(message, field=field)


class InvalidCredentials(AuthError):
    kind = "InvalidCredentials"
    status = 401
    default_message = "Invalid email or password"


class Unauthorized(AuthError):
    kind = "Unauthorized"
    status = 401
    default_message = "Not authorized"


class InvalidOrExpiredOTP(AuthError):
    kind = "InvalidOrExpiredOTP"
    default_message = "Invalid or expired OTP"


class UserNotFound(AuthError):
    kind = "UserNotFound"
    status = 404
    default_message = "User not found"


class OAuthVerificationFailed(AuthError):
    kind = "OAuthVerificationFailed"
    default_message = "Google login failed"


class DeliveryError(AuthError):
    kind = "DeliveryError"
    status = 502
    default_message = "Unable to send email right now"
