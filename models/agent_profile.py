"""Agent profile model."""

from utils.clock import utcnow

from . import db


class AgentProfile(db.Model):
    """Licensing details and activation state for an agent identity."""

    __tablename__ = "agent_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    license_number = db.Column(db.String(64), nullable=False, unique=True)
    brokerage_name = db.Column(db.String(160), nullable=True)
    title = db.Column(db.String(120), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    activated_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="agent_profile")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "license_number": self.license_number,
            "brokerage_name": self.brokerage_name,
            "title": self.title,
            "is_active": self.is_active,
            "activated_at": self.activated_at.isoformat() if self.activated_at else None,
        }
