"""User (identity) model definition."""

from typing import Optional

from sqlalchemy.orm import validates
from werkzeug.security import check_password_hash, generate_password_hash

from utils.clock import utcnow

from . import db


ROLES = ("admin", "agent", "renter")
REFERRING_ROLES = ("admin", "agent")
ACCOUNT_STATUSES = ("pending", "active", "suspended", "inactive")


class User(db.Model):
    """Represents a platform identity of any role."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    role = db.Column(db.String(16), nullable=False, default="renter")
    account_status = db.Column(
        db.String(16),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    must_change_password = db.Column(db.Boolean, nullable=False, default=False)
    password_auto_generated = db.Column(db.Boolean, nullable=False, default=False)
    referral_code = db.Column(db.String(16), unique=True, nullable=True)
    total_referrals = db.Column(
        db.Integer,
        nullable=False,
        default=0,
        server_default=db.text("0"),
    )
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    last_login_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    agent_profile = db.relationship(
        "AgentProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    renter_profile = db.relationship(
        "RenterProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        foreign_keys="RenterProfile.user_id",
    )

    @validates("role")
    def validate_role(self, key, value):
        if value not in ROLES:
            raise ValueError(f"Unknown role: {value!r}.")
        return value

    @validates("account_status")
    def validate_account_status(self, key, value):
        if value not in ACCOUNT_STATUSES:
            raise ValueError(f"Unknown account status: {value!r}.")
        return value

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def can_refer(self) -> bool:
        return self.role in REFERRING_ROLES

    def to_dict(self, include_referral: Optional[bool] = None) -> dict:
        """Serialize the public fields of the identity."""

        data = {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone_number": self.phone_number,
            "role": self.role,
            "account_status": self.account_status,
            "email_verified": self.email_verified,
            "must_change_password": self.must_change_password,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
        }
        show_referral = self.can_refer if include_referral is None else include_referral
        if show_referral:
            data["referral_code"] = self.referral_code
            data["total_referrals"] = self.total_referrals
        return data

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email} ({self.role})>"
