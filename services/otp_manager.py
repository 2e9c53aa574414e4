"""One-time passcode lifecycle shared by email verification and password reset.

Each record moves from pending to exactly one terminal state: verified,
exhausted (attempt ceiling reached) or expired. Issuing a new code always
invalidates the previous live codes for the same identity and purpose first,
so at most one code per (identity, purpose) can be redeemed.
"""

from __future__ import annotations

import hmac
import logging
import math
import secrets
from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from typing import Callable, Mapping, Optional

from models.otp_record import MAX_CODE_LENGTH, OtpRecord
from models.user import User
from stores.abstract_store import OtpStore
from utils.clock import utcnow

from .email_dispatcher import EmailDispatcher
from .errors import (
    AlreadyVerifiedError,
    MaxAttemptsExceededError,
    MismatchError,
    NotFoundError,
    OtpExpiredError,
    ThrottledError,
)

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION = "email_verification"
PASSWORD_RESET = "password_reset"

HOURLY_WINDOW = timedelta(hours=1)


@dataclass(frozen=True)
class OtpPolicy:
    length: int = 4
    ttl_minutes: int = 10
    max_attempts: int = 5
    min_resend_interval_seconds: int = 60
    max_resends_per_hour: int = 5

    def __post_init__(self) -> None:
        if not 1 <= self.length <= MAX_CODE_LENGTH:
            raise ValueError(f"OTP length must be between 1 and {MAX_CODE_LENGTH}, got {self.length}.")

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "OtpPolicy":
        known = {f.name for f in fields(cls)}
        return cls(**{key: int(value) for key, value in data.items() if key in known})


@dataclass(frozen=True)
class IssuedOtp:
    code: str
    expires_at: datetime
    ttl_minutes: int


class OtpManager:
    """Issue, verify, resend, and expire passcodes for any purpose."""

    def __init__(
        self,
        store: OtpStore,
        policies: Mapping[str, OtpPolicy],
        dispatcher: EmailDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.policies = dict(policies)
        self.dispatcher = dispatcher
        self.clock = clock

    def policy(self, purpose: str) -> OtpPolicy:
        try:
            return self.policies[purpose]
        except KeyError:
            raise ValueError(f"No OTP policy configured for purpose {purpose!r}") from None

    @staticmethod
    def generate_code(length: int) -> str:
        return f"{secrets.randbelow(10 ** length):0{length}d}"

    def invalidate_previous(self, user: User, purpose: str) -> int:
        """Logically expire every live code for (user, purpose)."""

        count = self.store.invalidate_previous(user.id, purpose, self.clock())
        if count:
            logger.info("Invalidated %d previous %s code(s) for user %s", count, purpose, user.id)
        return count

    def issue(self, user: User, purpose: str) -> IssuedOtp:
        policy = self.policy(purpose)
        self.invalidate_previous(user, purpose)

        now = self.clock()
        code = self.generate_code(policy.length)
        expires_at = now + timedelta(minutes=policy.ttl_minutes)
        self.store.create(
            user_id=user.id,
            email=user.email,
            purpose=purpose,
            code=code,
            expires_at=expires_at,
            attempts=0,
            max_attempts=policy.max_attempts,
            verified=False,
            created_at=now,
        )
        logger.info("Issued %s code for user %s, expires at %s", purpose, user.id, expires_at.isoformat())
        return IssuedOtp(code=code, expires_at=expires_at, ttl_minutes=policy.ttl_minutes)

    def send(self, user: User, purpose: str, issued: IssuedOtp) -> None:
        if purpose == PASSWORD_RESET:
            self.dispatcher.send_password_reset_code(user.email, user.full_name, issued.code, issued.ttl_minutes)
        else:
            self.dispatcher.send_verification_code(user.email, user.full_name, issued.code, issued.ttl_minutes)

    def issue_and_send(self, user: User, purpose: str) -> IssuedOtp:
        issued = self.issue(user, purpose)
        self.send(user, purpose, issued)
        return issued

    def verify(
        self,
        purpose: str,
        candidate: str,
        *,
        user: Optional[User] = None,
        email: Optional[str] = None,
    ) -> OtpRecord:
        """Check ``candidate`` against the current code for a user or an email."""

        if user is not None:
            record = self.store.find_current(user.id, purpose)
        elif email:
            record = self.store.find_current_by_email(email, purpose)
        else:
            raise ValueError("verify() needs a user or an email")
        return self._check(record, candidate)

    def _check(self, record: Optional[OtpRecord], candidate: str) -> OtpRecord:
        if record is None or record.verified:
            raise NotFoundError("No active verification code found. Please request a new code.")

        now = self.clock()
        if record.is_exhausted():
            logger.warning(
                "Max %s attempts exceeded for user %s (%d/%d)",
                record.purpose,
                record.user_id,
                record.attempts,
                record.max_attempts,
            )
            raise MaxAttemptsExceededError()

        if record.is_expired(now):
            raise OtpExpiredError()

        if not _codes_match(record.code, candidate):
            record = self.store.increment_attempts(record.id, now)
            remaining = record.remaining_attempts
            logger.warning(
                "Invalid %s code for user %s, %d attempt(s) remaining",
                record.purpose,
                record.user_id,
                remaining,
            )
            raise MismatchError(
                f"Invalid verification code. You have {remaining} attempt"
                f"{'' if remaining == 1 else 's'} remaining.",
                remaining_attempts=remaining,
            )

        record = self.store.mark_verified(record.id, now)
        logger.info("Verified %s code for user %s", record.purpose, record.user_id)
        return record

    def redeem(self, user: User, purpose: str, candidate: str) -> OtpRecord:
        """Accept a code that was verified earlier or verify it now, then consume it."""

        record = self.store.find_current(user.id, purpose)
        if record is not None and record.verified:
            if record.is_expired(self.clock()):
                raise OtpExpiredError()
            if not _codes_match(record.code, candidate):
                raise MismatchError("Invalid verification code.")
        else:
            record = self._check(record, candidate)

        self.invalidate_previous(user, purpose)
        return record

    def resend(self, user: User, purpose: str) -> IssuedOtp:
        """Replace the current code with a new one, subject to throttling."""

        current = self.store.find_current(user.id, purpose)
        if current is None:
            raise NotFoundError("No verification code to resend. Please start again.")
        if current.verified:
            raise AlreadyVerifiedError()

        self._enforce_throttle(user, purpose, current, first_is_free=True)
        issued = self.issue_and_send(user, purpose)
        logger.info("Resent %s code for user %s", purpose, user.id)
        return issued

    def request(self, user: User, purpose: str) -> IssuedOtp:
        """Issue a code on demand, applying the resend throttle to any pending one."""

        current = self.store.find_current(user.id, purpose)
        if current is not None and current.verified:
            current = None
        self._enforce_throttle(user, purpose, current, first_is_free=False)
        return self.issue_and_send(user, purpose)

    def _enforce_throttle(
        self,
        user: User,
        purpose: str,
        current: Optional[OtpRecord],
        *,
        first_is_free: bool,
    ) -> None:
        policy = self.policy(purpose)
        now = self.clock()

        if current is not None:
            reference = current.last_attempt_at or current.created_at
            interval = timedelta(seconds=policy.min_resend_interval_seconds)
            elapsed = (now - reference).total_seconds()
            if elapsed < policy.min_resend_interval_seconds:
                wait = max(math.ceil(policy.min_resend_interval_seconds - elapsed), 1)
                logger.info("Throttled %s resend for user %s, wait %ds", purpose, user.id, wait)
                raise ThrottledError(
                    f"Please wait {wait} seconds before requesting a new code.",
                    retry_after_seconds=wait,
                    retry_at=reference + interval,
                )

        # On resend the code issued at registration is not counted; every
        # requested code is.
        created = self.store.count_created_since(user.id, purpose, now - HOURLY_WINDOW)
        cap = policy.max_resends_per_hour + (1 if first_is_free else 0)
        if created >= cap:
            retry_at = now + HOURLY_WINDOW
            logger.info("Hourly %s cap reached for user %s (%d codes)", purpose, user.id, created)
            raise ThrottledError(
                "Too many code requests. Please try again after 1 hour.",
                retry_after_seconds=int(HOURLY_WINDOW.total_seconds()),
                retry_at=retry_at,
            )

    def time_remaining(self, user: User, purpose: str) -> Optional[int]:
        """Seconds until the current pending code expires, or ``None``."""

        record = self.store.find_current(user.id, purpose)
        if record is None or record.verified:
            return None
        remaining = (record.expires_at - self.clock()).total_seconds()
        return math.ceil(remaining) if remaining > 0 else 0

    def cleanup_expired(self, retention: timedelta = timedelta(hours=24)) -> int:
        """Delete records that expired more than ``retention`` ago.

        Expired rows are kept for a while so the hourly resend count still sees them.
        """

        deleted = self.store.delete_expired(self.clock() - retention)
        logger.info("Deleted %d expired OTP record(s)", deleted)
        return deleted


def _codes_match(expected: str, candidate: Optional[str]) -> bool:
    return hmac.compare_digest(expected.encode(), str(candidate or "").encode())
