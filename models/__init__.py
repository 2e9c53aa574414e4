"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .agent_profile import AgentProfile  # noqa: E402,F401
from .renter_profile import RenterProfile  # noqa: E402,F401
from .otp_record import OtpRecord  # noqa: E402,F401

__all__ = [
    "db",
    "User",
    "AgentProfile",
    "RenterProfile",
    "OtpRecord",
]
