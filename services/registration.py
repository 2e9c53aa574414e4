"""Registration orchestrator for renters and agents.

The renter flow is chosen from the referral code supplied with the request:

* no code: normal registration, password required, email OTP required;
* ``AGT-`` code: as normal, plus the agent is recorded as the referrer;
* ``ADM-`` code: passwordless. A temporary password is emailed, the account
  is active and verified immediately, and a token pair is returned.

Every pre-check (code format, duplicate email, referrer validity, password
rules) runs before the first write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from models.agent_profile import AgentProfile
from models.renter_profile import RenterProfile
from models.user import User
from stores.abstract_store import IdentityStore, ProfileStore

from .email_dispatcher import EmailDispatcher
from .errors import ConflictError, InvalidRequestError
from .otp_manager import EMAIL_VERIFICATION, OtpManager
from .passwords import generate_temporary_password, require_password
from .referral_codec import (
    ADMIN_REFERRAL,
    AGENT_REFERRAL,
    NORMAL,
    ParsedReferral,
    ReferralCodec,
    referral_link,
)
from .token_issuer import TokenIssuer, TokenPair

logger = logging.getLogger(__name__)


@dataclass
class RegistrationReceipt:
    user: User
    registration_type: str
    message: str
    renter_profile: Optional[RenterProfile] = None
    agent_profile: Optional[AgentProfile] = None
    tokens: Optional[TokenPair] = None
    verification_expires_at: Optional[datetime] = None
    referral_link: Optional[str] = None

    @property
    def requires_verification(self) -> bool:
        return not self.user.email_verified

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "message": self.message,
            "registration_type": self.registration_type,
            "user": self.user.to_dict(),
            "requires_email_verification": self.requires_verification,
        }
        if self.renter_profile is not None:
            data["renter"] = self.renter_profile.to_dict()
        if self.agent_profile is not None:
            data["agent"] = self.agent_profile.to_dict()
        if self.referral_link is not None:
            data["referral_link"] = self.referral_link
        if self.verification_expires_at is not None:
            data["verification_expires_at"] = self.verification_expires_at.isoformat()
        if self.tokens is not None:
            data["tokens"] = self.tokens.to_dict()
            data["must_change_password"] = self.user.must_change_password
        return data


class RegistrationOrchestrator:
    """Create identities and role profiles through the registration flows."""

    def __init__(
        self,
        identities: IdentityStore,
        profiles: ProfileStore,
        codec: ReferralCodec,
        otp: OtpManager,
        tokens: TokenIssuer,
        dispatcher: EmailDispatcher,
        *,
        client_url: str,
        temporary_password_length: int = 12,
    ):
        self.identities = identities
        self.profiles = profiles
        self.codec = codec
        self.otp = otp
        self.tokens = tokens
        self.dispatcher = dispatcher
        self.client_url = client_url
        self.temporary_password_length = temporary_password_length

    def register_renter(
        self,
        *,
        email: str,
        password: Optional[str] = None,
        full_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        referral_code: Optional[str] = None,
        questionnaire: Optional[dict] = None,
    ) -> RegistrationReceipt:
        parsed = self.codec.parse(referral_code)
        email = self._require_email(email)
        self._ensure_email_available(email)

        if parsed.kind == NORMAL:
            password = require_password(password)
            return self._register_normal(email, password, full_name, phone_number)

        referrer = self.codec.resolve(parsed)
        if parsed.kind == AGENT_REFERRAL:
            password = require_password(password)
            return self._register_agent_referral(
                parsed, referrer, email, password, full_name, phone_number
            )
        return self._register_admin_referral(
            parsed, referrer, email, full_name, phone_number, questionnaire
        )

    def _create_pending_renter(self, email, password, full_name, phone_number) -> User:
        return self.identities.create(
            email=email,
            password=password,
            full_name=full_name,
            phone_number=phone_number,
            role="renter",
            account_status="pending",
            email_verified=False,
        )

    def _register_normal(self, email, password, full_name, phone_number) -> RegistrationReceipt:
        user = self._create_pending_renter(email, password, full_name, phone_number)
        profile = self.profiles.create_renter_profile(user.id, registration_type=NORMAL)
        issued = self.otp.issue_and_send(user, EMAIL_VERIFICATION)

        logger.info("Registered renter %s (normal)", user.id)
        return RegistrationReceipt(
            user=user,
            registration_type=NORMAL,
            message="Registration successful. Please verify your email with the code we sent.",
            renter_profile=profile,
            verification_expires_at=issued.expires_at,
        )

    def _register_agent_referral(
        self, parsed: ParsedReferral, agent: User, email, password, full_name, phone_number
    ) -> RegistrationReceipt:
        user = self._create_pending_renter(email, password, full_name, phone_number)
        profile = self.profiles.create_renter_profile(
            user.id,
            registration_type=AGENT_REFERRAL,
            referred_by_agent_id=agent.id,
        )
        self.identities.increment_referrals(agent.id)
        issued = self.otp.issue_and_send(user, EMAIL_VERIFICATION)

        logger.info("Registered renter %s referred by agent %s (%s)", user.id, agent.id, parsed.code)
        return RegistrationReceipt(
            user=user,
            registration_type=AGENT_REFERRAL,
            message="Registration successful. Please verify your email with the code we sent.",
            renter_profile=profile,
            verification_expires_at=issued.expires_at,
        )

    def _register_admin_referral(
        self, parsed: ParsedReferral, admin: User, email, full_name, phone_number, questionnaire
    ) -> RegistrationReceipt:
        if questionnaire is not None and not isinstance(questionnaire, dict):
            raise InvalidRequestError("questionnaire must be an object.")

        temporary_password = generate_temporary_password(self.temporary_password_length)
        user = self.identities.create(
            email=email,
            password=temporary_password,
            full_name=full_name,
            phone_number=phone_number,
            role="renter",
            account_status="active",
            email_verified=True,
            must_change_password=True,
            password_auto_generated=True,
        )
        profile = self.profiles.create_renter_profile(
            user.id,
            registration_type=ADMIN_REFERRAL,
            referred_by_admin_id=admin.id,
            questionnaire=questionnaire,
        )
        self.identities.increment_referrals(admin.id)
        self.dispatcher.send_temporary_password(user.email, user.full_name, temporary_password)
        tokens = self.tokens.issue(user)

        logger.info("Registered renter %s referred by admin %s (%s, passwordless)", user.id, admin.id, parsed.code)
        return RegistrationReceipt(
            user=user,
            registration_type=ADMIN_REFERRAL,
            message="Registration successful. A temporary password has been sent to your email.",
            renter_profile=profile,
            tokens=tokens,
        )

    def register_agent(
        self,
        *,
        email: str,
        password: Optional[str],
        license_number: Optional[str],
        full_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        brokerage_name: Optional[str] = None,
        title: Optional[str] = None,
    ) -> RegistrationReceipt:
        email = self._require_email(email)
        license_number = (license_number or "").strip()
        if not license_number:
            raise InvalidRequestError("License number is required.")
        password = require_password(password)
        self._ensure_email_available(email)
        if self.profiles.find_agent_by_license(license_number) is not None:
            raise ConflictError("License number already registered.")

        referral_code = self.codec.generate("agent")
        user = self.identities.create(
            email=email,
            password=password,
            full_name=full_name,
            phone_number=phone_number,
            role="agent",
            account_status="pending",
            email_verified=False,
            referral_code=referral_code,
        )
        profile = self.profiles.create_agent_profile(
            user.id,
            license_number=license_number,
            brokerage_name=brokerage_name,
            title=title,
            is_active=False,
        )
        issued = self.otp.issue_and_send(user, EMAIL_VERIFICATION)

        logger.info("Registered agent %s with referral code %s", user.id, referral_code)
        return RegistrationReceipt(
            user=user,
            registration_type="agent",
            message="Registration successful. Please verify your email; an administrator will activate your account.",
            agent_profile=profile,
            verification_expires_at=issued.expires_at,
            referral_link=referral_link(self.client_url, referral_code),
        )

    @staticmethod
    def _require_email(email: Optional[str]) -> str:
        normalized = (email or "").strip().lower()
        if not normalized or "@" not in normalized:
            raise InvalidRequestError("A valid email is required.")
        return normalized

    def _ensure_email_available(self, email: str) -> None:
        if self.identities.find_by_email(email) is not None:
            raise ConflictError("Email already registered.")
