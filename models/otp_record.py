"""One-time passcode records."""

from sqlalchemy.orm import validates

from utils.clock import utcnow

from . import db


OTP_PURPOSES = ("email_verification", "password_reset")
MAX_CODE_LENGTH = 12


class OtpRecord(db.Model):
    """A numeric passcode issued to an identity for a single purpose."""

    __tablename__ = "otp_records"
    __table_args__ = (
        db.Index("ix_otp_records_user_purpose_created", "user_id", "purpose", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email = db.Column(db.String(255), nullable=False, index=True)
    purpose = db.Column(db.String(32), nullable=False)
    code = db.Column(db.String(MAX_CODE_LENGTH), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    max_attempts = db.Column(db.Integer, nullable=False)
    verified = db.Column(db.Boolean, nullable=False, default=False)
    verified_at = db.Column(db.DateTime, nullable=True)
    invalidated = db.Column(db.Boolean, nullable=False, default=False)
    last_attempt_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship(
        "User", backref=db.backref("otp_records", cascade="all, delete-orphan")
    )

    @validates("purpose")
    def validate_purpose(self, key, value):
        if value not in OTP_PURPOSES:
            raise ValueError(f"Unknown OTP purpose: {value!r}.")
        return value

    def is_expired(self, now) -> bool:
        return now >= self.expires_at

    def is_exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    @property
    def remaining_attempts(self) -> int:
        return max(self.max_attempts - self.attempts, 0)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<OtpRecord {self.purpose} user={self.user_id} attempts={self.attempts}>"
