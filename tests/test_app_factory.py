"""Tests for the Flask application factory."""
from __future__ import annotations

from services import AdmissionServices


def test_health_endpoint_returns_ok(client):
    """The health endpoint should respond with an OK payload."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_blueprints_registered(app):
    """Application factory should register expected blueprints."""
    bps = set(app.blueprints.keys())
    assert {"auth", "register", "admin"}.issubset(bps)


def test_services_built_once_per_app(app):
    services = app.extensions["admission"]
    assert isinstance(services, AdmissionServices)
    assert services.login.tokens is services.tokens
    assert services.registration.otp is services.otp
    assert services.dispatcher.celery_app is app.extensions["celery"]


def test_cleanup_otps_command(app, services, clock):
    user = services.identities.create(email="cli@example.com", password="RenterPass1")
    services.otp.issue(user, "email_verification")
    clock.advance(days=2)

    result = app.test_cli_runner().invoke(args=["cleanup-otps"])

    assert result.exit_code == 0
    assert "Deleted 1 expired OTP record(s)." in result.output
