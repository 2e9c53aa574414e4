"""Application configuration module."""

import os
from datetime import timedelta


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY", f"{SECRET_KEY}-refresh")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=_int_env("JWT_ACCESS_TOKEN_MINUTES", 15))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=_int_env("JWT_REFRESH_TOKEN_DAYS", 7))
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///app.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # One-time passcodes, per purpose
    EMAIL_VERIFICATION_OTP = {
        "length": _int_env("EMAIL_OTP_LENGTH", 4),
        "ttl_minutes": _int_env("EMAIL_OTP_TTL_MINUTES", 10),
        "max_attempts": _int_env("EMAIL_OTP_MAX_ATTEMPTS", 5),
        "min_resend_interval_seconds": _int_env("EMAIL_OTP_RESEND_INTERVAL", 60),
        "max_resends_per_hour": _int_env("EMAIL_OTP_RESENDS_PER_HOUR", 5),
    }
    PASSWORD_RESET_OTP = {
        "length": _int_env("RESET_OTP_LENGTH", 4),
        "ttl_minutes": _int_env("RESET_OTP_TTL_MINUTES", 10),
        "max_attempts": _int_env("RESET_OTP_MAX_ATTEMPTS", 10),
        "min_resend_interval_seconds": _int_env("RESET_OTP_RESEND_INTERVAL", 60),
        "max_resends_per_hour": _int_env("RESET_OTP_RESENDS_PER_HOUR", 10),
    }

    # Registration / login
    CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")
    DEFAULT_REFERRAL_AGENT_EMAIL = os.getenv("DEFAULT_REFERRAL_AGENT_EMAIL")
    TEMPORARY_PASSWORD_LENGTH = _int_env("TEMPORARY_PASSWORD_LENGTH", 12)

    # Outbound email
    MAIL_TRANSPORT = os.getenv("MAIL_TRANSPORT", "outbox")
    MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@rentconnect.example")
    MAIL_SENDER_NAME = os.getenv("MAIL_SENDER_NAME", "RentConnect")
    BREVO_API_KEY = os.getenv("BREVO_API_KEY")
    BREVO_API_URL = os.getenv("BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
    MAIL_TIMEOUT_SECONDS = _int_env("MAIL_TIMEOUT_SECONDS", 10)
    ADMIN_NOTIFICATION_EMAIL = os.getenv("ADMIN_NOTIFICATION_EMAIL")

    # Background tasks
    CELERY = {
        "broker_url": os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"),
        "task_always_eager": os.getenv("CELERY_TASK_ALWAYS_EAGER", "false").lower() == "true",
        "task_ignore_result": True,
        "task_serializer": "json",
        "accept_content": ["json"],
    }
