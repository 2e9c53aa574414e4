"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from utils.clock import utcnow  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-access-secret"
    JWT_REFRESH_SECRET_KEY = "test-refresh-secret"
    RATE_LIMIT = "1000 per minute"
    MAIL_TRANSPORT = "outbox"
    CELERY = {"broker_url": "memory://", "task_always_eager": True, "task_ignore_result": True}
    CLIENT_URL = "https://app.example"
    ADMIN_NOTIFICATION_EMAIL = "ops@example.com"


class FakeClock:
    """A clock the tests can move forward by hand."""

    def __init__(self, start=None):
        self.now = start or utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def app(clock) -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig)
    services = application.extensions["admission"]
    services.otp.clock = clock
    services.login.clock = clock
    services.accounts.clock = clock

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def services(app: Flask):
    """Admission services with an application context pushed."""

    with app.app_context():
        yield app.extensions["admission"]


@pytest.fixture()
def outbox(app: Flask):
    transport = app.extensions["admission"].transport
    transport.clear()
    return transport


@pytest.fixture()
def make_admin(services):
    def _make(email="admin@example.com", password="AdminPass123", **fields):
        values = {
            "full_name": "Ada Admin",
            "role": "admin",
            "account_status": "active",
            "email_verified": True,
            "referral_code": services.codec.generate("admin"),
        }
        values.update(fields)
        return services.identities.create(email=email, password=password, **values)

    return _make


@pytest.fixture()
def make_agent(services):
    def _make(email="agent@example.com", password="AgentPass123", active=True, **fields):
        values = {
            "full_name": "Alex Agent",
            "role": "agent",
            "account_status": "active",
            "email_verified": True,
            "referral_code": services.codec.generate("agent"),
        }
        values.update(fields)
        user = services.identities.create(email=email, password=password, **values)
        services.profiles.create_agent_profile(
            user.id,
            license_number=f"LIC-{user.id:05d}",
            title="Leasing Agent",
            is_active=active,
        )
        return user

    return _make
