"""Login admission controller.

Gates run in a fixed order and the first failing gate ends the attempt:

1. identity lookup by email
2. account status
3. email verification (agents and renters)
4. agent profile activation
5. password check
6. renter referral consistency, which may assign a referrer
7. ``last_login_at`` update
8. token issuing and a role-shaped result
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from models.renter_profile import RenterProfile
from models.user import User
from stores.abstract_store import IdentityStore, ProfileStore
from utils.clock import utcnow

from .errors import (
    AccountInactiveError,
    AccountSuspendedError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    MismatchError,
    NotFoundError,
    ReferralRequiredError,
)
from .referral_codec import AGENT_REFERRAL, ReferralCodec
from .token_issuer import TokenIssuer, TokenPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferrerSummary:
    id: int
    role: str
    full_name: Optional[str]
    email: str
    phone_number: Optional[str]
    referral_code: Optional[str]

    @classmethod
    def from_user(cls, user: User) -> "ReferrerSummary":
        return cls(
            id=user.id,
            role=user.role,
            full_name=user.full_name,
            email=user.email,
            phone_number=user.phone_number,
            referral_code=user.referral_code,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "full_name": self.full_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "referral_code": self.referral_code,
        }


@dataclass(frozen=True)
class ReferralInfo:
    registration_type: str
    referrer: Optional[ReferrerSummary]

    def to_dict(self) -> dict[str, Any]:
        return {
            "registration_type": self.registration_type,
            "referrer": self.referrer.to_dict() if self.referrer else None,
        }


@dataclass(frozen=True)
class AdminLoginResult:
    user: User
    tokens: TokenPair
    role = "admin"

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "user": self.user.to_dict(),
            "tokens": self.tokens.to_dict(),
            "must_change_password": self.user.must_change_password,
        }


@dataclass(frozen=True)
class AgentLoginResult:
    user: User
    tokens: TokenPair
    title: Optional[str]
    login_link: str
    role = "agent"

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "user": self.user.to_dict(),
            "tokens": self.tokens.to_dict(),
            "must_change_password": self.user.must_change_password,
            "title": self.title,
            "login_link": self.login_link,
        }


@dataclass(frozen=True)
class RenterLoginResult:
    user: User
    tokens: TokenPair
    referral_info: Optional[ReferralInfo]
    role = "renter"

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "user": self.user.to_dict(),
            "tokens": self.tokens.to_dict(),
            "must_change_password": self.user.must_change_password,
            "referral_info": self.referral_info.to_dict() if self.referral_info else None,
        }


LoginResult = Union[AdminLoginResult, AgentLoginResult, RenterLoginResult]


class LoginController:
    """Admit a login attempt through the ordered gates."""

    def __init__(
        self,
        identities: IdentityStore,
        profiles: ProfileStore,
        codec: ReferralCodec,
        tokens: TokenIssuer,
        *,
        client_url: str,
        default_agent_email: Optional[str] = None,
        clock: Callable = utcnow,
    ):
        self.identities = identities
        self.profiles = profiles
        self.codec = codec
        self.tokens = tokens
        self.client_url = client_url.rstrip("/")
        self.default_agent_email = default_agent_email
        self.clock = clock

    def login(self, email: str, password: str, referral_code: Optional[str] = None) -> LoginResult:
        user = self.identities.find_by_email(email)
        if user is None or user.is_deleted:
            raise InvalidCredentialsError()

        if user.account_status == "suspended":
            raise AccountSuspendedError()
        if user.account_status == "inactive":
            raise AccountInactiveError()

        if user.role in ("agent", "renter") and not user.email_verified:
            raise EmailNotVerifiedError()

        agent_profile = None
        if user.role == "agent":
            agent_profile = self.profiles.find_agent_profile(user.id)
            if agent_profile is None or not agent_profile.is_active:
                raise AccountInactiveError(
                    "Your agent account has not been activated yet. Please wait for admin approval."
                )

        if not user.check_password(password or ""):
            raise InvalidCredentialsError()

        renter_profile = None
        if user.role == "renter":
            renter_profile = self._enforce_referral(user, referral_code)

        user = self.identities.update(user.id, last_login_at=self.clock())
        tokens = self.tokens.issue(user)
        logger.info("Admitted login for user %s (%s)", user.id, user.role)

        if user.role == "agent":
            return AgentLoginResult(
                user=user,
                tokens=tokens,
                title=agent_profile.title,
                login_link=f"{self.client_url}/login",
            )
        if user.role == "renter":
            return RenterLoginResult(
                user=user,
                tokens=tokens,
                referral_info=self._referral_info(renter_profile),
            )
        return AdminLoginResult(user=user, tokens=tokens)

    def _enforce_referral(self, user: User, referral_code: Optional[str]) -> RenterProfile:
        profile = self.profiles.find_renter_profile(user.id)
        if profile is None:
            raise NotFoundError("Renter profile not found.")

        if profile.referrer_id is None:
            if not referral_code:
                default_agent = self.identities.find_default_referral_agent(self.default_agent_email)
                logger.info("Refused login for renter %s: no referrer assigned", user.id)
                raise ReferralRequiredError(
                    default_agent=(
                        ReferrerSummary.from_user(default_agent).to_dict() if default_agent else None
                    )
                )
            return self.assign_referral_on_login(user, referral_code)

        if referral_code:
            parsed = self.codec.parse(referral_code)
            assigned = profile.referrer
            if assigned is None or assigned.referral_code != parsed.code:
                logger.warning(
                    "Renter %s tried to switch referral from %s to %s",
                    user.id,
                    assigned.referral_code if assigned else None,
                    parsed.code,
                )
                raise MismatchError("You cannot switch referral. Your account is already linked to a referrer.")
        return profile

    def assign_referral_on_login(self, user: User, referral_code: str) -> RenterProfile:
        """Attach a referrer to a renter who has none; the only referrer write after registration.

        The assignment and the referrer's counter increment are separate writes.
        """

        parsed = self.codec.parse(referral_code)
        referrer = self.codec.resolve(parsed)
        is_agent = parsed.kind == AGENT_REFERRAL
        self.profiles.assign_renter_referrer(
            user.id,
            registration_type=parsed.kind,
            agent_id=referrer.id if is_agent else None,
            admin_id=None if is_agent else referrer.id,
        )
        self.identities.increment_referrals(referrer.id)
        logger.info(
            "Assigned referrer %s (%s) to renter %s on login", referrer.id, parsed.code, user.id
        )
        return self.profiles.find_renter_profile(user.id)

    @staticmethod
    def _referral_info(profile: Optional[RenterProfile]) -> Optional[ReferralInfo]:
        if profile is None:
            return None
        referrer = profile.referrer
        return ReferralInfo(
            registration_type=profile.registration_type,
            referrer=ReferrerSummary.from_user(referrer) if referrer else None,
        )
