"""Domain errors raised by the admission services.

Each error carries a stable ``kind`` that callers can branch on. They derive
from werkzeug's ``HTTPException`` so the application's JSON error handler can
render them like any other HTTP error; the status code is only a default for
that boundary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from werkzeug.exceptions import HTTPException


class AdmissionError(HTTPException):
    """Base class for every domain error."""

    code = 400
    kind = "BadRequest"
    default_message = "The request could not be processed."

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        super().__init__(description=message or self.default_message)
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.kind}
        for key, value in self.extra.items():
            payload[key] = value.isoformat() if isinstance(value, datetime) else value
        return payload


class InvalidRequestError(AdmissionError):
    kind = "BadRequest"


class InvalidCredentialsError(AdmissionError):
    code = 401
    kind = "InvalidCredentials"
    default_message = "Invalid email or password."


class AccountInactiveError(AdmissionError):
    code = 403
    kind = "AccountInactive"
    default_message = "This account is inactive."


class AccountSuspendedError(AdmissionError):
    code = 403
    kind = "AccountSuspended"
    default_message = "This account has been suspended."


class EmailNotVerifiedError(AdmissionError):
    code = 403
    kind = "EmailNotVerified"
    default_message = "Please verify your email address before logging in."


class ConflictError(AdmissionError):
    code = 409
    kind = "Conflict"
    default_message = "The resource already exists."


class NotFoundError(AdmissionError):
    code = 404
    kind = "NotFound"
    default_message = "The requested resource was not found."


class InvalidFormatError(AdmissionError):
    kind = "InvalidFormat"
    default_message = "Invalid referral code format."


class ThrottledError(AdmissionError):
    code = 429
    kind = "Throttled"
    default_message = "Too many requests. Please try again later."

    def __init__(
        self, message: str | None = None, *, retry_after_seconds: int, retry_at: datetime
    ) -> None:
        super().__init__(
            message, retry_after_seconds=retry_after_seconds, retry_at=retry_at
        )
        self.retry_after_seconds = retry_after_seconds
        self.retry_at = retry_at

    def get_headers(self, environ=None, scope=None):
        headers = super().get_headers(environ, scope)
        headers.append(("Retry-After", str(self.retry_after_seconds)))
        return headers


class MaxAttemptsExceededError(AdmissionError):
    kind = "MaxAttemptsExceeded"
    default_message = "Maximum verification attempts exceeded. Please request a new code."


class OtpExpiredError(AdmissionError):
    kind = "Expired"
    default_message = "The verification code has expired. Please request a new code."


class MismatchError(AdmissionError):
    kind = "Mismatch"
    default_message = "The supplied value does not match."


class AlreadyVerifiedError(AdmissionError):
    kind = "AlreadyVerified"
    default_message = "Email already verified."


class ReferralRequiredError(AdmissionError):
    code = 403
    kind = "ReferralRequired"
    default_message = "A referral code is required to continue. Please log in with a referral code."


class TokenInvalidError(AdmissionError):
    code = 401
    kind = "TokenInvalid"
    default_message = "Invalid or expired token."
