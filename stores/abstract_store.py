"""Storage interfaces consumed by the admission services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from models.agent_profile import AgentProfile
from models.otp_record import OtpRecord
from models.renter_profile import RenterProfile
from models.user import User


class IdentityStore(ABC):
    """Interface for identity persistence."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[User]:
        """Return the identity owning ``email`` (case-insensitive), if any."""

    @abstractmethod
    def find_by_id(self, user_id: int) -> Optional[User]:
        """Return the identity with the given primary key, if any."""

    @abstractmethod
    def find_by_referral_code(self, code: str) -> Optional[User]:
        """Return the identity holding ``code``, if any."""

    @abstractmethod
    def create(self, *, email: str, password: str, **fields: Any) -> User:
        """Persist a new identity with a hashed password."""

    @abstractmethod
    def update(self, user_id: int, **changes: Any) -> User:
        """Apply column changes to an identity and persist them."""

    @abstractmethod
    def set_password(self, user_id: int, password: str, *, must_change_password: bool = False) -> User:
        """Replace the stored password hash."""

    @abstractmethod
    def increment_referrals(self, user_id: int) -> None:
        """Atomically add one to the identity's referral counter."""

    @abstractmethod
    def find_default_referral_agent(self, preferred_email: Optional[str] = None) -> Optional[User]:
        """Return the agent suggested to renters who log in without a referrer."""


class ProfileStore(ABC):
    """Interface for agent and renter profile persistence."""

    @abstractmethod
    def find_agent_profile(self, user_id: int) -> Optional[AgentProfile]:
        """Return the agent profile for an identity, if any."""

    @abstractmethod
    def find_agent_by_license(self, license_number: str) -> Optional[AgentProfile]:
        """Return the agent profile registered with a license number, if any."""

    @abstractmethod
    def create_agent_profile(self, user_id: int, **fields: Any) -> AgentProfile:
        """Persist a new agent profile."""

    @abstractmethod
    def update_agent_profile(self, user_id: int, **changes: Any) -> AgentProfile:
        """Apply changes to an agent profile."""

    @abstractmethod
    def find_renter_profile(self, user_id: int) -> Optional[RenterProfile]:
        """Return the renter profile for an identity, if any."""

    @abstractmethod
    def create_renter_profile(self, user_id: int, **fields: Any) -> RenterProfile:
        """Persist a new renter profile."""

    @abstractmethod
    def assign_renter_referrer(
        self,
        user_id: int,
        *,
        registration_type: str,
        agent_id: Optional[int] = None,
        admin_id: Optional[int] = None,
    ) -> RenterProfile:
        """Write the referrer fields of a renter profile."""


class OtpStore(ABC):
    """Interface for one-time passcode persistence."""

    @abstractmethod
    def create(self, **fields: Any) -> OtpRecord:
        """Persist a new passcode record."""

    @abstractmethod
    def find_current(self, user_id: int, purpose: str) -> Optional[OtpRecord]:
        """Return the newest record for (identity, purpose) that was not invalidated."""

    @abstractmethod
    def find_current_by_email(self, email: str, purpose: str) -> Optional[OtpRecord]:
        """Return the newest non-invalidated record for an email address."""

    @abstractmethod
    def increment_attempts(self, record_id: int, at: datetime) -> OtpRecord:
        """Record one failed verification attempt."""

    @abstractmethod
    def mark_verified(self, record_id: int, at: datetime) -> OtpRecord:
        """Move a record into its verified terminal state."""

    @abstractmethod
    def invalidate_previous(self, user_id: int, purpose: str, at: datetime) -> int:
        """Logically expire every live record for (identity, purpose)."""

    @abstractmethod
    def count_created_since(self, user_id: int, purpose: str, since: datetime) -> int:
        """Count records created for (identity, purpose) at or after ``since``."""

    @abstractmethod
    def delete_expired(self, before: datetime) -> int:
        """Physically remove records that expired before ``before``."""
