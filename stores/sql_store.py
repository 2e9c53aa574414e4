"""SQLAlchemy implementations of the storage interfaces."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func

from models import db
from models.agent_profile import AgentProfile
from models.otp_record import OtpRecord
from models.renter_profile import RenterProfile
from models.user import User

from .abstract_store import IdentityStore, OtpStore, ProfileStore


def _normalize_email(raw_email: str | None) -> str:
    return (raw_email or "").strip().lower()


class SqlIdentityStore(IdentityStore):
    """Persist identities in the ``users`` table."""

    def find_by_email(self, email: str) -> Optional[User]:
        normalized = _normalize_email(email)
        if not normalized:
            return None
        return User.query.filter(func.lower(User.email) == normalized).first()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)

    def find_by_referral_code(self, code: str) -> Optional[User]:
        return User.query.filter_by(referral_code=code).first()

    def create(self, *, email: str, password: str, **fields: Any) -> User:
        user = User(email=_normalize_email(email), **fields)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    def update(self, user_id: int, **changes: Any) -> User:
        user = self._require(user_id)
        for key, value in changes.items():
            setattr(user, key, value)
        db.session.commit()
        return user

    def set_password(self, user_id: int, password: str, *, must_change_password: bool = False) -> User:
        user = self._require(user_id)
        user.set_password(password)
        user.must_change_password = must_change_password
        if not must_change_password:
            user.password_auto_generated = False
        db.session.commit()
        return user

    def increment_referrals(self, user_id: int) -> None:
        db.session.execute(
            db.update(User)
            .where(User.id == user_id)
            .values(total_referrals=User.total_referrals + 1)
        )
        db.session.commit()

    def find_default_referral_agent(self, preferred_email: Optional[str] = None) -> Optional[User]:
        if preferred_email:
            preferred = self.find_by_email(preferred_email)
            if preferred is not None and preferred.role == "agent" and preferred.referral_code:
                return preferred

        return (
            User.query.join(AgentProfile, AgentProfile.user_id == User.id)
            .filter(
                User.role == "agent",
                User.account_status == "active",
                User.is_deleted.is_(False),
                User.referral_code.isnot(None),
                AgentProfile.is_active.is_(True),
            )
            .order_by(User.created_at.asc(), User.id.asc())
            .first()
        )

    def _require(self, user_id: int) -> User:
        user = self.find_by_id(user_id)
        if user is None:
            raise LookupError(f"User {user_id} does not exist.")
        return user


class SqlProfileStore(ProfileStore):
    """Persist agent and renter profiles."""

    def find_agent_profile(self, user_id: int) -> Optional[AgentProfile]:
        return AgentProfile.query.filter_by(user_id=user_id).first()

    def find_agent_by_license(self, license_number: str) -> Optional[AgentProfile]:
        return AgentProfile.query.filter(
            func.lower(AgentProfile.license_number) == license_number.strip().lower()
        ).first()

    def create_agent_profile(self, user_id: int, **fields: Any) -> AgentProfile:
        profile = AgentProfile(user_id=user_id, **fields)
        db.session.add(profile)
        db.session.commit()
        return profile

    def update_agent_profile(self, user_id: int, **changes: Any) -> AgentProfile:
        profile = self.find_agent_profile(user_id)
        if profile is None:
            raise LookupError(f"Agent profile for user {user_id} does not exist.")
        for key, value in changes.items():
            setattr(profile, key, value)
        db.session.commit()
        return profile

    def find_renter_profile(self, user_id: int) -> Optional[RenterProfile]:
        return RenterProfile.query.filter_by(user_id=user_id).first()

    def create_renter_profile(self, user_id: int, **fields: Any) -> RenterProfile:
        profile = RenterProfile(user_id=user_id, **fields)
        db.session.add(profile)
        db.session.commit()
        return profile

    def assign_renter_referrer(
        self,
        user_id: int,
        *,
        registration_type: str,
        agent_id: Optional[int] = None,
        admin_id: Optional[int] = None,
    ) -> RenterProfile:
        profile = self.find_renter_profile(user_id)
        if profile is None:
            raise LookupError(f"Renter profile for user {user_id} does not exist.")
        profile.registration_type = registration_type
        profile.referred_by_agent_id = agent_id
        profile.referred_by_admin_id = admin_id
        db.session.commit()
        return profile


class SqlOtpStore(OtpStore):
    """Persist passcode records in ``otp_records``."""

    def create(self, **fields: Any) -> OtpRecord:
        record = OtpRecord(**fields)
        db.session.add(record)
        db.session.commit()
        return record

    def find_current(self, user_id: int, purpose: str) -> Optional[OtpRecord]:
        return (
            OtpRecord.query.filter_by(user_id=user_id, purpose=purpose, invalidated=False)
            .order_by(OtpRecord.created_at.desc(), OtpRecord.id.desc())
            .first()
        )

    def find_current_by_email(self, email: str, purpose: str) -> Optional[OtpRecord]:
        return (
            OtpRecord.query.filter_by(
                email=_normalize_email(email), purpose=purpose, invalidated=False
            )
            .order_by(OtpRecord.created_at.desc(), OtpRecord.id.desc())
            .first()
        )

    def increment_attempts(self, record_id: int, at: datetime) -> OtpRecord:
        db.session.execute(
            db.update(OtpRecord)
            .where(OtpRecord.id == record_id)
            .values(attempts=OtpRecord.attempts + 1, last_attempt_at=at)
        )
        db.session.commit()
        return db.session.get(OtpRecord, record_id)

    def mark_verified(self, record_id: int, at: datetime) -> OtpRecord:
        record = db.session.get(OtpRecord, record_id)
        record.verified = True
        record.verified_at = at
        record.last_attempt_at = at
        db.session.commit()
        return record

    def invalidate_previous(self, user_id: int, purpose: str, at: datetime) -> int:
        records = OtpRecord.query.filter_by(
            user_id=user_id, purpose=purpose, invalidated=False
        ).all()
        for record in records:
            record.invalidated = True
            if record.expires_at > at:
                record.expires_at = at
        db.session.commit()
        return len(records)

    def count_created_since(self, user_id: int, purpose: str, since: datetime) -> int:
        return OtpRecord.query.filter(
            OtpRecord.user_id == user_id,
            OtpRecord.purpose == purpose,
            OtpRecord.created_at >= since,
        ).count()

    def delete_expired(self, before: datetime) -> int:
        deleted = OtpRecord.query.filter(OtpRecord.expires_at < before).delete(
            synchronize_session=False
        )
        db.session.commit()
        return deleted
