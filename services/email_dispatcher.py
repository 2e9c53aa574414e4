"""Outbound email payloads and transports."""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

import requests
from celery import Celery

logger = logging.getLogger(__name__)

VERIFICATION_CODE = "verification_code"
PASSWORD_RESET_CODE = "password_reset_code"
TEMPORARY_PASSWORD = "temporary_password"
WELCOME = "welcome"
PASSWORD_RESET_CONFIRMATION = "password_reset_confirmation"
AGENT_PENDING_APPROVAL = "agent_pending_approval"

DELIVER_EMAIL = "admission.deliver_email"


@dataclass
class EmailMessage:
    kind: str
    to: str
    subject: str
    html: str
    context: dict[str, Any] = field(default_factory=dict)


class OutboxTransport:
    """Keep sent messages in memory. Used in development and tests."""

    def __init__(self) -> None:
        self.messages: list[EmailMessage] = []
        self._lock = threading.Lock()

    def send(self, message: EmailMessage) -> None:
        with self._lock:
            self.messages.append(message)
        logger.info("Queued %s email for %s in outbox", message.kind, message.to)

    def latest(self, kind: Optional[str] = None, to: Optional[str] = None) -> Optional[EmailMessage]:
        with self._lock:
            for message in reversed(self.messages):
                if kind is not None and message.kind != kind:
                    continue
                if to is not None and message.to != to:
                    continue
                return message
        return None

    def clear(self) -> None:
        with self._lock:
            self.messages.clear()


class BrevoTransport:
    """Deliver messages through the Brevo transactional email API."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        api_url: str,
        sender_email: str,
        sender_name: str,
        timeout: int = 10,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        if not self.api_key:
            raise RuntimeError("BREVO_API_KEY is not set")

        response = requests.post(
            self.api_url,
            headers={"api-key": self.api_key, "Content-Type": "application/json"},
            json={
                "sender": {"name": self.sender_name, "email": self.sender_email},
                "to": [{"email": message.to}],
                "subject": message.subject,
                "htmlContent": message.html,
            },
            timeout=self.timeout,
        )
        if response.status_code not in (200, 201, 202):
            raise RuntimeError(f"Brevo error {response.status_code}: {response.text}")
        logger.info("Sent %s email to %s", message.kind, message.to)


class EmailDispatcher:
    """Build structured email payloads and queue them for delivery.

    Every ``send_*`` method queues a Celery task and returns immediately. A
    failure to queue is logged here; a failure to deliver is logged by the task.
    """

    def __init__(self, celery_app: Celery, *, client_url: str, brand: str = "RentConnect"):
        self.celery_app = celery_app
        self.client_url = client_url.rstrip("/")
        self.brand = brand

    @property
    def login_link(self) -> str:
        return f"{self.client_url}/login"

    def dispatch(self, message: EmailMessage) -> None:
        try:
            self.celery_app.tasks[DELIVER_EMAIL].delay(asdict(message))
        except Exception:
            logger.exception("Could not queue %s email to %s", message.kind, message.to)

    def send_verification_code(self, to: str, name: Optional[str], code: str, expires_in_minutes: int) -> None:
        self.dispatch(
            EmailMessage(
                kind=VERIFICATION_CODE,
                to=to,
                subject=f"Verify Your Email - {self.brand}",
                html=(
                    f"<p>Hi {name or to},</p>"
                    f"<p>Your verification code is <strong>{code}</strong>.</p>"
                    f"<p>This code will expire in {expires_in_minutes} minutes.</p>"
                ),
                context={"code": code, "expires_in_minutes": expires_in_minutes},
            )
        )

    def send_password_reset_code(self, to: str, name: Optional[str], code: str, expires_in_minutes: int) -> None:
        self.dispatch(
            EmailMessage(
                kind=PASSWORD_RESET_CODE,
                to=to,
                subject=f"Password Reset Code - {self.brand}",
                html=(
                    f"<p>Hi {name or to},</p>"
                    f"<p>Your password reset code is <strong>{code}</strong>.</p>"
                    f"<p>This code will expire in {expires_in_minutes} minutes. "
                    "If you did not request a reset, you can ignore this email.</p>"
                ),
                context={"code": code, "expires_in_minutes": expires_in_minutes},
            )
        )

    def send_temporary_password(self, to: str, name: Optional[str], temporary_password: str) -> None:
        self.dispatch(
            EmailMessage(
                kind=TEMPORARY_PASSWORD,
                to=to,
                subject=f"Your {self.brand} account is ready",
                html=(
                    f"<p>Hi {name or to},</p>"
                    "<p>An account has been created for you. Sign in with this temporary "
                    f"password and choose a new one: <strong>{temporary_password}</strong></p>"
                    f'<p><a href="{self.login_link}">Log in</a></p>'
                ),
                context={"temporary_password": temporary_password, "login_link": self.login_link},
            )
        )

    def send_welcome(self, to: str, name: Optional[str], role: str) -> None:
        self.dispatch(
            EmailMessage(
                kind=WELCOME,
                to=to,
                subject=f"Welcome to {self.brand}!",
                html=(
                    f"<p>Hi {name or to},</p>"
                    "<p>Your email address has been verified.</p>"
                    f'<p><a href="{self.login_link}">Go to your dashboard</a></p>'
                ),
                context={"role": role, "login_link": self.login_link},
            )
        )

    def send_password_reset_confirmation(self, to: str, name: Optional[str]) -> None:
        self.dispatch(
            EmailMessage(
                kind=PASSWORD_RESET_CONFIRMATION,
                to=to,
                subject=f"Your {self.brand} password was changed",
                html=(
                    f"<p>Hi {name or to},</p>"
                    "<p>Your password was reset. If this was not you, contact support immediately.</p>"
                ),
            )
        )

    def send_agent_pending_approval(self, to: str, agent_email: str, agent_name: Optional[str], license_number: Optional[str]) -> None:
        self.dispatch(
            EmailMessage(
                kind=AGENT_PENDING_APPROVAL,
                to=to,
                subject=f"New agent pending approval: {agent_email}",
                html=(
                    f"<p>{agent_name or agent_email} ({agent_email}) verified their email "
                    f"and is waiting for activation. License: {license_number or 'N/A'}.</p>"
                ),
                context={"agent_email": agent_email, "license_number": license_number},
            )
        )


def build_transport(config: dict):
    """Return the transport named by ``MAIL_TRANSPORT``."""

    name = (config.get("MAIL_TRANSPORT") or "outbox").lower()
    if name == "outbox":
        return OutboxTransport()
    if name == "brevo":
        return BrevoTransport(
            config.get("BREVO_API_KEY"),
            api_url=config.get("BREVO_API_URL"),
            sender_email=config.get("MAIL_FROM"),
            sender_name=config.get("MAIL_SENDER_NAME", "RentConnect"),
            timeout=int(config.get("MAIL_TIMEOUT_SECONDS", 10)),
        )
    raise ValueError(f"Unknown MAIL_TRANSPORT {name!r}")
