"""Account maintenance flows built on the OTP lifecycle and token issuer."""

from __future__ import annotations

import logging
from typing import Optional

from models.user import User
from stores.abstract_store import IdentityStore, ProfileStore
from utils.clock import utcnow

from .email_dispatcher import EmailDispatcher
from .errors import (
    AlreadyVerifiedError,
    InvalidCredentialsError,
    InvalidRequestError,
    NotFoundError,
)
from .otp_manager import EMAIL_VERIFICATION, PASSWORD_RESET, IssuedOtp, OtpManager
from .passwords import require_password
from .token_issuer import TokenIssuer

logger = logging.getLogger(__name__)

GENERIC_VERIFICATION_MESSAGE = "If an account exists with this email, a verification code has been sent."
GENERIC_RESET_MESSAGE = "If an account exists with this email, a password reset code has been sent."


class AccountService:
    def __init__(
        self,
        identities: IdentityStore,
        profiles: ProfileStore,
        otp: OtpManager,
        tokens: TokenIssuer,
        dispatcher: EmailDispatcher,
        *,
        admin_notification_email: Optional[str] = None,
        clock=utcnow,
    ):
        self.identities = identities
        self.profiles = profiles
        self.otp = otp
        self.tokens = tokens
        self.dispatcher = dispatcher
        self.admin_notification_email = admin_notification_email
        self.clock = clock

    def _active_user(self, email: Optional[str]) -> Optional[User]:
        if not email:
            raise InvalidRequestError("Email is required.")
        user = self.identities.find_by_email(email.strip())
        if user is None or user.is_deleted:
            return None
        return user

    # Email verification

    def verify_email(self, email: str, code: str) -> User:
        if not code:
            raise InvalidRequestError("Verification code is required.")
        user = self._active_user(email)
        if user is None:
            raise NotFoundError("No active verification code found. Please request a new code.")
        if user.email_verified:
            raise AlreadyVerifiedError()

        self.otp.verify(EMAIL_VERIFICATION, code, user=user)
        user = self.identities.update(user.id, email_verified=True, account_status="active")
        logger.info("Email verified for user %s (%s)", user.id, user.role)

        self.dispatcher.send_welcome(user.email, user.full_name, user.role)
        if user.role == "agent" and self.admin_notification_email:
            profile = self.profiles.find_agent_profile(user.id)
            self.dispatcher.send_agent_pending_approval(
                self.admin_notification_email,
                user.email,
                user.full_name,
                profile.license_number if profile else None,
            )
        return user

    def resend_verification(self, email: str) -> Optional[IssuedOtp]:
        """Resend the verification code; ``None`` when the email is unknown."""

        user = self._active_user(email)
        if user is None:
            logger.info("Verification resend requested for unknown email")
            return None
        if user.email_verified:
            raise AlreadyVerifiedError()
        return self.otp.resend(user, EMAIL_VERIFICATION)

    # Password reset

    def request_password_reset(self, email: str) -> Optional[IssuedOtp]:
        """Email a reset code; ``None`` when the email is unknown."""

        user = self._active_user(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None
        issued = self.otp.request(user, PASSWORD_RESET)
        logger.info("Password reset code requested for user %s", user.id)
        return issued

    def resend_password_otp(self, email: str) -> Optional[IssuedOtp]:
        return self.request_password_reset(email)

    def verify_reset_otp(self, email: str, code: str) -> User:
        if not code:
            raise InvalidRequestError("Verification code is required.")
        user = self._active_user(email)
        if user is None:
            raise InvalidCredentialsError("Invalid email or verification code.")
        self.otp.verify(PASSWORD_RESET, code, user=user)
        return user

    def reset_password(self, email: str, code: str, new_password: str) -> User:
        if not code:
            raise InvalidRequestError("Verification code is required.")
        new_password = require_password(new_password)
        user = self._active_user(email)
        if user is None:
            raise InvalidCredentialsError("Invalid email or verification code.")

        self.otp.redeem(user, PASSWORD_RESET, code)
        user = self.identities.set_password(user.id, new_password, must_change_password=False)
        logger.info("Password reset for user %s", user.id)
        self.dispatcher.send_password_reset_confirmation(user.email, user.full_name)
        return user

    # Authenticated flows

    def change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        user = self.identities.find_by_id(user_id)
        if user is None or user.is_deleted:
            raise NotFoundError("User not found.")
        if not user.check_password(current_password or ""):
            raise InvalidCredentialsError("Current password is incorrect.")
        new_password = require_password(new_password)
        if new_password == current_password:
            raise InvalidRequestError("New password must differ from the current password.")

        user = self.identities.set_password(user.id, new_password, must_change_password=False)
        if user.password_auto_generated:
            user = self.identities.update(user.id, password_auto_generated=False)
        logger.info("Password changed for user %s", user.id)
        return user

    def refresh(self, refresh_token: Optional[str]) -> str:
        if not refresh_token:
            raise InvalidRequestError("Refresh token is required.")
        return self.tokens.refresh(refresh_token)

    def logout(self, user_id: int) -> None:
        logger.info("User %s logged out", user_id)

    def set_agent_active(self, user_id: int, active: bool) -> User:
        """Toggle the agent profile flag checked at login and refresh."""

        user = self.identities.find_by_id(user_id)
        if user is None or user.is_deleted or user.role != "agent":
            raise NotFoundError("Agent not found.")
        if self.profiles.find_agent_profile(user.id) is None:
            raise NotFoundError("Agent profile not found.")

        self.profiles.update_agent_profile(
            user.id,
            is_active=active,
            activated_at=self.clock() if active else None,
        )
        logger.info("Agent %s %s", user.id, "activated" if active else "deactivated")
        return self.identities.find_by_id(user.id)
