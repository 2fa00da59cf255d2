# backend/app.py
from __future__ import annotations

import os
from datetime import timedelta

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_cors import CORS

from config import CONFIGS, Config
from db import db, migrate
from errors import AuthError

# Ensure models are imported so Flask-Migrate sees them
from models.user import User
from models.password_otp import PasswordOtp

# Blueprints
from routes.auth import auth_bp

from services.auth_flow import AuthFlow
from services.google_identity import verify_identity_token as google_verify_identity_token
from services.otps import OtpStore
from services.tokens import TokenIssuer
from services.users import UserStore
from utils.mail import send_email as smtp_send_email


def _resolve_config(config):
    if config is None:
        return CONFIGS.get(os.environ.get("APP_ENV", "").lower(), Config)
    if isinstance(config, str):
        return CONFIGS[config]
    return config


def create_app(config=None, *, send_email=None, verify_identity_token=None, clock=None) -> Flask:
    """
    Build the app. `send_email`, `verify_identity_token` and `clock` replace
    the SMTP sender, Google verifier and wall clock (tests pass fakes).
    """
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host) for correct URL generation
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    # Load config + init extensions
    app.config.from_object(_resolve_config(config))
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/*": {"origins": origins if origins == "*" else origins.split(",")}})

    db.init_app(app)
    migrate.init_app(app, db)

    flow_kwargs = {}
    if clock is not None:
        flow_kwargs["clock"] = clock
    app.extensions["auth_flow"] = AuthFlow(
        users=UserStore(),
        otps=OtpStore(app.config["OTP_PEPPER"]),
        tokens=TokenIssuer(
            app.config["SECRET_KEY"],
            ttl=timedelta(days=app.config["JWT_TTL_DAYS"]),
            algorithm=app.config.get("JWT_ALGORITHM", "HS256"),
        ),
        send_email=send_email or smtp_send_email,
        verify_identity_token=verify_identity_token or google_verify_identity_token,
        otp_ttl=timedelta(minutes=app.config["OTP_TTL_MINUTES"]),
        invalidate_prior_codes=app.config["OTP_INVALIDATE_PRIOR"],
        consume_code_on_reset=app.config["OTP_CONSUME_ON_RESET"],
        app_name=app.config.get("APP_NAME", "YourApp"),
        **flow_kwargs,
    )

    with app.app_context():
        # Touch models so Alembic/Flask-Migrate registers them
        _ = (User, PasswordOtp)

    # Health check
    @app.route("/")
    def health_check():
        return jsonify(status="ok"), 200

    @app.errorhandler(AuthError)
    def handle_auth_error(e: AuthError):
        db.session.rollback()
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(error="Not Found", path=request.path), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        db.session.rollback()
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        return jsonify(success=False, error="Internal server error"), 500

    # Register blueprints
    app.register_blueprint(auth_bp)

    @app.cli.command("init-db")
    def init_db_cmd():
        """Create tables without migrations (local/dev)."""
        db.create_all()
        print("Database tables created.")

    # CLI: drop reset codes whose window has lapsed
    @app.cli.command("purge-otps")
    def purge_otps_cmd():
        n = app.extensions["auth_flow"].purge_expired_otps()
        print(f"Purged {n} expired reset code(s).")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=app.config.get("DEBUG", False),
    )
