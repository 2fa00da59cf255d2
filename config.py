# backend/config.py
import os

from dotenv import load_dotenv

# Pick up a local .env in dev; real deployments set the environment directly
load_dotenv()


def _to_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

def _to_int(val: str | None, default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


class Config:
    # ── Core ─────────────────────────────────────────────────────────────────
    DEBUG = _to_bool(os.environ.get("DEBUG") or os.environ.get("FLASK_DEBUG"), False)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret")  # ← override in prod!
    APP_NAME = os.environ.get("APP_NAME", "YourApp")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///auth.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # ── Auth / JWT ──────────────────────────────────────────────────────────
    JWT_TTL_DAYS = _to_int(os.environ.get("JWT_TTL_DAYS"), 7)
    JWT_ALGORITHM = "HS256"

    # ── Password reset OTP ──────────────────────────────────────────────────
    OTP_TTL_MINUTES = _to_int(os.environ.get("OTP_TTL_MINUTES"), 5)
    OTP_PEPPER = os.environ.get("OTP_PEPPER", "change-me")  # set long random in prod
    OTP_INVALIDATE_PRIOR = _to_bool(os.environ.get("OTP_INVALIDATE_PRIOR"), True)
    OTP_CONSUME_ON_RESET = _to_bool(os.environ.get("OTP_CONSUME_ON_RESET"), True)

    # ── Google sign-in ──────────────────────────────────────────────────────
    GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID")

    # ── Mail (SMTP relay) ───────────────────────────────────────────────────
    MAIL_HOST = os.environ.get("MAIL_HOST", "smtp-relay.brevo.com")
    MAIL_PORT = _to_int(os.environ.get("MAIL_PORT"), 587)
    MAIL_USE_SSL = _to_bool(os.environ.get("MAIL_USE_SSL"), False)
    MAIL_LOGIN = os.environ.get("MAIL_LOGIN")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_FROM = os.environ.get("MAIL_FROM")
    MAIL_TIMEOUT = _to_int(os.environ.get("MAIL_TIMEOUT"), 20)


class ProductionConfig(Config):
    DEBUG = False
    SECRET_KEY = os.environ.get("SECRET_KEY")

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 180,
        "pool_size": _to_int(os.environ.get("DB_POOL_SIZE"), 5),
        "max_overflow": _to_int(os.environ.get("DB_MAX_OVERFLOW"), 10),
        "pool_timeout": _to_int(os.environ.get("DB_POOL_TIMEOUT"), 30),
        "connect_args": {
            "connect_timeout": _to_int(os.environ.get("DB_CONNECT_TIMEOUT"), 10),
            "read_timeout": _to_int(os.environ.get("DB_READ_TIMEOUT"), 10),
            "write_timeout": _to_int(os.environ.get("DB_WRITE_TIMEOUT"), 10),
        },
    }


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    SECRET_KEY = "test-secret"
    OTP_PEPPER = "test-pepper"
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    GOOGLE_CLIENT_ID = "test-client-id.apps.googleusercontent.com"
    OTP_INVALIDATE_PRIOR = True
    OTP_CONSUME_ON_RESET = True


CONFIGS = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}
