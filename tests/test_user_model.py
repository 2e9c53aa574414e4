"""Tests for the User model helpers."""

import pytest

from models import db
from models.otp_record import OtpRecord
from models.renter_profile import RenterProfile
from models.user import User


def test_password_helpers_and_defaults(app):
    """New identities start pending with a hashed password."""

    with app.app_context():
        user = User(email="helper@example.com", role="renter")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()
        db.session.refresh(user)

        assert user.password_hash != "password123"
        assert user.check_password("password123") is True
        assert user.check_password("wrong") is False
        assert user.account_status == "pending"
        assert user.email_verified is False
        assert user.total_referrals == 0
        assert user.can_refer is False


def test_to_dict_shows_referral_fields_only_for_referrers(app):
    with app.app_context():
        agent = User(email="agent@example.com", role="agent", referral_code="AGT-ABCDEFGH")
        renter = User(email="renter@example.com", role="renter")
        agent.set_password("password123")
        renter.set_password("password123")
        db.session.add_all([agent, renter])
        db.session.commit()

        assert agent.to_dict()["referral_code"] == "AGT-ABCDEFGH"
        assert "referral_code" not in renter.to_dict()
        assert "password_hash" not in agent.to_dict()


def test_unknown_role_and_status_are_rejected(app):
    with app.app_context():
        with pytest.raises(ValueError):
            User(email="x@example.com", role="landlord")

        user = User(email="y@example.com", role="renter")
        with pytest.raises(ValueError):
            user.account_status = "banned"
        user.account_status = "suspended"
        assert user.account_status == "suspended"


def test_unknown_otp_purpose_is_rejected(app):
    with app.app_context():
        with pytest.raises(ValueError):
            OtpRecord(email="x@example.com", purpose="login", code="1234", max_attempts=5)


def test_unknown_registration_type_is_rejected(app):
    with app.app_context():
        with pytest.raises(ValueError):
            RenterProfile(user_id=1, registration_type="agent")
        assert RenterProfile(user_id=1, registration_type="admin_referral").registration_type == "admin_referral"
