"""Tests covering security and hardening features."""

from __future__ import annotations

import sys
from pathlib import Path

from flask import Flask

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app
from config import Config


class _SecurityBaseConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAIL_TRANSPORT = "outbox"
    CELERY = {"broker_url": "memory://", "task_always_eager": True, "task_ignore_result": True}


def _build_app(**overrides) -> Flask:
    class TestConfig(_SecurityBaseConfig):
        pass

    for key, value in overrides.items():
        setattr(TestConfig, key, value)

    return create_app(TestConfig)


def test_cors_allows_configured_origin():
    app = _build_app(CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get(
        "/health", headers={"Origin": "https://client.example"}
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("X-Request-ID")


def test_rate_limit_exceeded_returns_json():
    app = _build_app(RATE_LIMIT="2 per minute")
    client = app.test_client()

    client.get("/health")
    client.get("/health")
    response = client.get("/health")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["error"] == "Too Many Requests"
    assert "request_id" in payload


def test_json_error_shape_for_invalid_request():
    app = _build_app()
    client = app.test_client()

    response = client.post(
        "/auth/login",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "Bad Request"
    assert "Request content type" in payload["detail"]
    assert payload["request_id"]
    assert "code" not in payload


def test_missing_fields_are_reported():
    app = _build_app()
    client = app.test_client()

    response = client.post("/register/agent", json={"email": "a@x.com"})

    assert response.status_code == 400
    assert "license_number, password" in response.get_json()["detail"]


def test_request_id_is_echoed():
    app = _build_app()
    client = app.test_client()

    response = client.get("/health", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


def test_camel_case_keys_are_accepted():
    app = _build_app()
    client = app.test_client()

    response = client.post(
        "/register/renter",
        json={"email": "a@x.com", "password": "RenterPass1", "referralCode": "AGT-bad"},
    )

    assert response.status_code == 400
    assert response.get_json()["code"] == "InvalidFormat"
