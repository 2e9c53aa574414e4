"""Renter profile model."""

from sqlalchemy.orm import validates

from utils.clock import utcnow

from . import db


REGISTRATION_TYPES = ("normal", "agent_referral", "admin_referral")


class RenterProfile(db.Model):
    """Renter-specific data, including who referred the renter."""

    __tablename__ = "renter_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    registration_type = db.Column(db.String(32), nullable=False, default="normal")
    referred_by_agent_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True, index=True
    )
    referred_by_admin_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True, index=True
    )
    questionnaire = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship(
        "User", back_populates="renter_profile", foreign_keys=[user_id]
    )
    referred_by_agent = db.relationship("User", foreign_keys=[referred_by_agent_id])
    referred_by_admin = db.relationship("User", foreign_keys=[referred_by_admin_id])

    @validates("registration_type")
    def validate_registration_type(self, key, value):
        if value not in REGISTRATION_TYPES:
            raise ValueError(f"Unknown registration type: {value!r}.")
        return value

    @property
    def referrer_id(self):
        return self.referred_by_agent_id or self.referred_by_admin_id

    @property
    def referrer(self):
        return self.referred_by_agent or self.referred_by_admin

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "registration_type": self.registration_type,
            "referred_by_agent_id": self.referred_by_agent_id,
            "referred_by_admin_id": self.referred_by_admin_id,
            "questionnaire": self.questionnaire,
        }
