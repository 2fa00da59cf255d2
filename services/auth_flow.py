# services/auth_flow.py
"""
Account flows: register, login, current user, Google sign-in and the
three-step password reset (forgot -> validate code -> reset).

Every collaborator with side effects is passed in, so the flow runs the same
against SMTP/Google in production and against fakes in tests:

  users                  UserStore-like   credential records
  otps                   OtpStore-like    reset codes
  tokens                 TokenIssuer      session JWTs
  send_email             (to=, subject=, html=, text=) -> None, raises DeliveryError
  verify_identity_token  (token) -> {email, name, picture, sub}, raises OAuthVerificationFailed
  hash_password          (plain) -> hash
  verify_password        (plain, hash) -> bool
  clock                  () -> aware UTC datetime

All input checks run before any write. The one deliberate exception to
"report what went wrong" is forgot_password, which answers an unknown email
exactly as it answers a known one.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Tuple

from flask import current_app

from errors import (
    DuplicateIdentity,
    InvalidCredentials,
    InvalidEmail,
    InvalidFormat,
    InvalidOrExpiredOTP,
    MissingField,
    OAuthVerificationFailed,
    PasswordMismatch,
    Unauthorized,
    UserNotFound,
    WeakPassword,
)
from models.user import User
from services.otps import as_utc
from utils.mail import mask_email
from utils.security import gen_otp_code, hash_password as _hash_password, verify_password as _verify_password
from utils.validation import (
    is_strong_password,
    is_valid_email,
    is_valid_username,
    normalize_email,
    normalize_otp_code,
    sanitize,
)

__all__ = ["AuthFlow", "FORGOT_PASSWORD_ACK"]

FORGOT_PASSWORD_ACK = "If an account exists for that email, a reset code has been sent."


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class AuthFlow:
    def __init__(
        self,
        *,
        users,
        otps,
        tokens,
        send_email: Callable[..., None],
        verify_identity_token: Callable[[str], Dict[str, Any]],
        hash_password: Callable[[str], str] = _hash_password,
        verify_password: Callable[[str, str], bool] = _verify_password,
        clock: Callable[[], datetime] = _now_utc,
        otp_ttl: timedelta = timedelta(minutes=5),
        invalidate_prior_codes: bool = True,
        consume_code_on_reset: bool = True,
        app_name: str = "YourApp",
    ):
        self.users = users
        self.otps = otps
        self.tokens = tokens
        self.send_email = send_email
        self.verify_identity_token = verify_identity_token
        self.hash_password = hash_password
        self.verify_password = verify_password
        self.clock = clock
        self.otp_ttl = otp_ttl
        self.invalidate_prior_codes = invalidate_prior_codes
        self.consume_code_on_reset = consume_code_on_reset
        self.app_name = app_name

    # ------------------------------------------------------------------
    # Registration / login
    # ------------------------------------------------------------------
    def register(self, username, email, password) -> Tuple[User, str]:
        username = sanitize(username, "username")
        email = sanitize(email, "email")
        if not username or not email or not isinstance(password, str) or not password:
            raise MissingField()

        if not is_valid_username(username):
            raise InvalidFormat(
                "Username must be 3-20 characters: letters, numbers or underscore",
                field="username",
            )
        email = normalize_email(email)
        if not is_valid_email(email):
            raise InvalidEmail()
        if not is_strong_password(password):
            raise WeakPassword()

        conflict = self.users.find_conflict(email=email, username=username)
        if conflict:
            raise DuplicateIdentity(conflict)

        user = self.users.create(
            username=username,
            email=email,
            password_hash=self.hash_password(password),
        )
        current_app.logger.info("[auth] registered uid=%s email=%s", user.id, mask_email(email))
        return user, self.tokens.issue(user.id)

    def login(self, email, password) -> Tuple[User, str]:
        email = sanitize(email, "email")
        if not email or not isinstance(password, str) or not password:
            raise MissingField("Please provide email and password")
        email = normalize_email(email)
        if not is_valid_email(email):
            raise InvalidEmail()

        user = self.users.find_by_email(email)
        if not (user and self.verify_password(password, user.password_hash)):
            current_app.logger.info("[auth] failed login for %s", mask_email(email))
            raise InvalidCredentials()

        return user, self.tokens.issue(user.id)

    def get_me(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if not user:
            raise Unauthorized()
        return user

    # ------------------------------------------------------------------
    # Google sign-in
    # ------------------------------------------------------------------
    def google_sign_in(self, identity_token) -> Tuple[User, str]:
        if not isinstance(identity_token, str) or not identity_token.strip():
            raise MissingField("Google token is required")

        info = self.verify_identity_token(identity_token.strip())
        email = normalize_email(info.get("email") or "")
        if not is_valid_email(email):
            raise OAuthVerificationFailed("Google account has no usable email")

        sub = info.get("sub")
        user = self._google_account(sub, email)
        if user is None:
            try:
                user = self.users.create(
                    username=self._username_from_name(info.get("name") or email.split("@", 1)[0]),
                    email=email,
                    password_hash="",
                    profile_pic=info.get("picture"),
                    google_id=sub,
                )
            except DuplicateIdentity:
                # a concurrent sign-in for the same identity inserted first
                user = self._google_account(sub, email)
                if user is None:
                    raise
            else:
                current_app.logger.info("[auth] created Google account uid=%s email=%s", user.id, mask_email(email))
        self.users.link_google(user, google_id=sub, picture=info.get("picture"))

        return user, self.tokens.issue(user.id)

    def _google_account(self, sub, email):
        """The account a Google identity maps to: linked `sub` first, then email."""
        if sub:
            user = self.users.find_by_google_id(sub)
            if user is not None:
                return user
        return self.users.find_by_email(email)

    def _username_from_name(self, name: str) -> str:
        base = re.sub(r"[^A-Za-z0-9_]", "_", name.strip())[:20] or "user"
        if len(base) < 3:
            base = (base + "___")[:3]
        candidate, n = base, 1
        while self.users.username_taken(candidate):
            suffix = str(n)
            candidate = base[: 20 - len(suffix)] + suffix
            n += 1
        return candidate

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------
    def forgot_password(self, email) -> str:
        email = sanitize(email, "email")
        if not email:
            raise MissingField("Please provide an email")
        email = normalize_email(email)
        if not is_valid_email(email):
            raise InvalidEmail()

        user = self.users.find_by_email(email)
        if user is None:
            current_app.logger.info("[otp] reset requested for unknown %s", mask_email(email))
            return FORGOT_PASSWORD_ACK

        if self.invalidate_prior_codes:
            dropped = self.otps.invalidate_for(email)
            if dropped:
                current_app.logger.info("[otp] dropped %d earlier code(s) for %s", dropped, mask_email(email))

        code = gen_otp_code()
        self.otps.create(email, code, self.clock())

        minutes = int(self.otp_ttl.total_seconds() // 60)
        html = f"""
          <div style="font-family:system-ui,Segoe UI,Roboto,Arial">
            <h2>Reset your {self.app_name} password</h2>
            <p>Your one-time code is:</p>
            <div style="font-size:24px;font-weight:700;letter-spacing:3px">{code}</div>
            <p>This code expires in {minutes} minutes.</p>
          </div>
        """
        self.send_email(
            to=user.email,
            subject="Password Reset OTP",
            html=html,
            text=f"Your OTP code is {code}. Valid for {minutes} minutes.",
        )
        current_app.logger.info("[otp] reset code sent to %s", mask_email(email))
        return FORGOT_PASSWORD_ACK

    def validate_otp(self, email, code) -> bool:
        self._matching_code(email, code)
        return True

    def reset_password(self, email, code, new_password, confirm_password) -> bool:
        if not isinstance(new_password, str) or not new_password \
                or not isinstance(confirm_password, str) or not confirm_password:
            raise MissingField("Provide both passwords")

        email, rec = self._matching_code(email, code)

        if new_password != confirm_password:
            raise PasswordMismatch()
        if not is_strong_password(new_password):
            raise WeakPassword()

        user = self.users.find_by_email(email)
        if user is None:
            raise UserNotFound()

        self.users.update_password(user, self.hash_password(new_password))
        if self.consume_code_on_reset:
            self.otps.delete(rec)
        current_app.logger.info("[otp] password reset for uid=%s", user.id)
        return True

    def purge_expired_otps(self) -> int:
        return self.otps.purge_older_than(self.otp_ttl, self.clock())

    def _matching_code(self, email, code):
        """(normalized email, code row) for a live matching code, else InvalidOrExpiredOTP."""
        email = sanitize(email, "email")
        code = normalize_otp_code(code)
        if not email or code == "":
            raise MissingField("Email and code are required")
        if code is None:
            raise InvalidOrExpiredOTP()
        email = normalize_email(email)

        rec = self.otps.find_match(email, code)
        if rec is None:
            raise InvalidOrExpiredOTP()
        if self.clock() > as_utc(rec.created_at) + self.otp_ttl:
            current_app.logger.info("[otp] expired code used for %s", mask_email(email))
            raise InvalidOrExpiredOTP()
        return email, rec
