"""Tests for the registration orchestrator."""

import pytest

from models.otp_record import OtpRecord
from models.user import User
from services.email_dispatcher import TEMPORARY_PASSWORD, VERIFICATION_CODE
from services.errors import (
    ConflictError,
    InvalidFormatError,
    InvalidRequestError,
    NotFoundError,
)
from services.otp_manager import EMAIL_VERIFICATION
from services.referral_codec import ADMIN_REFERRAL, AGENT_REFERRAL, NORMAL


def test_normal_registration_creates_pending_renter(services, outbox):
    receipt = services.registration.register_renter(
        email="New.Renter@Example.com",
        password="RenterPass1",
        full_name="Nora Renter",
    )

    user = receipt.user
    assert user.email == "new.renter@example.com"
    assert user.role == "renter"
    assert user.account_status == "pending"
    assert user.email_verified is False
    assert receipt.registration_type == NORMAL
    assert receipt.tokens is None
    assert receipt.requires_verification is True
    assert receipt.renter_profile.referrer_id is None

    assert services.otp_store.find_current(user.id, EMAIL_VERIFICATION) is not None
    assert outbox.latest(VERIFICATION_CODE, user.email) is not None


def test_agent_referral_records_referrer_and_counts(services, make_agent):
    agent = make_agent()

    receipt = services.registration.register_renter(
        email="referred@example.com",
        password="RenterPass1",
        referral_code=agent.referral_code,
    )

    assert receipt.registration_type == AGENT_REFERRAL
    assert receipt.renter_profile.referred_by_agent_id == agent.id
    assert receipt.renter_profile.referred_by_admin_id is None
    assert receipt.user.account_status == "pending"
    assert services.identities.find_by_id(agent.id).total_referrals == 1


def test_admin_referral_is_passwordless(services, outbox, make_admin):
    admin = make_admin()

    receipt = services.registration.register_renter(
        email="invited@example.com",
        full_name="Ivy Invited",
        referral_code=admin.referral_code,
        questionnaire={"budget": 2000, "bedrooms": 2},
    )

    user = receipt.user
    assert receipt.registration_type == ADMIN_REFERRAL
    assert user.account_status == "active"
    assert user.email_verified is True
    assert user.must_change_password is True
    assert user.password_auto_generated is True
    assert receipt.tokens is not None
    assert receipt.requires_verification is False
    assert receipt.renter_profile.referred_by_admin_id == admin.id
    assert receipt.renter_profile.questionnaire == {"budget": 2000, "bedrooms": 2}
    assert services.identities.find_by_id(admin.id).total_referrals == 1
    assert OtpRecord.query.filter_by(user_id=user.id).count() == 0

    message = outbox.latest(TEMPORARY_PASSWORD, user.email)
    assert message is not None
    assert user.check_password(message.context["temporary_password"])


def test_admin_referral_ignores_supplied_password(services, make_admin):
    admin = make_admin()

    receipt = services.registration.register_renter(
        email="invited2@example.com",
        password="ChosenPass1",
        referral_code=admin.referral_code,
    )

    assert receipt.user.check_password("ChosenPass1") is False


def test_duplicate_email_is_conflict(services):
    services.registration.register_renter(email="dup@example.com", password="RenterPass1")

    with pytest.raises(ConflictError):
        services.registration.register_renter(email="DUP@example.com", password="RenterPass1")


def test_invalid_code_creates_nothing(services):
    with pytest.raises(InvalidFormatError):
        services.registration.register_renter(
            email="bad@example.com", password="RenterPass1", referral_code="AGT-123"
        )
    with pytest.raises(NotFoundError):
        services.registration.register_renter(
            email="bad@example.com", password="RenterPass1", referral_code="AGT-ZZZZZZZZ"
        )

    assert User.query.filter_by(email="bad@example.com").first() is None


def test_unverified_pending_referrer_is_accepted(services, make_agent):
    agent = make_agent(account_status="pending", email_verified=False)

    receipt = services.registration.register_renter(
        email="early@example.com", password="RenterPass1", referral_code=agent.referral_code
    )

    assert receipt.renter_profile.referred_by_agent_id == agent.id


def test_inactive_referrer_is_rejected(services, make_agent):
    agent = make_agent(account_status="inactive")

    with pytest.raises(InvalidRequestError):
        services.registration.register_renter(
            email="late@example.com", password="RenterPass1", referral_code=agent.referral_code
        )
    assert User.query.filter_by(email="late@example.com").first() is None


def test_password_required_outside_admin_flow(services, make_agent):
    agent = make_agent()

    with pytest.raises(InvalidRequestError):
        services.registration.register_renter(email="nopass@example.com")
    with pytest.raises(InvalidRequestError):
        services.registration.register_renter(
            email="nopass@example.com", password="short", referral_code=agent.referral_code
        )
    assert services.identities.find_by_id(agent.id).total_referrals == 0


def test_register_agent_creates_inactive_profile(services, outbox):
    receipt = services.registration.register_agent(
        email="fresh.agent@example.com",
        password="AgentPass123",
        license_number="RE-778899",
        full_name="Fern Agent",
        brokerage_name="Acme Realty",
        title="Broker",
    )

    user = receipt.user
    assert user.role == "agent"
    assert user.account_status == "pending"
    assert user.referral_code.startswith("AGT-")
    assert receipt.agent_profile.is_active is False
    assert receipt.referral_link == f"https://app.example/signup?ref={user.referral_code}"
    assert outbox.latest(VERIFICATION_CODE, user.email) is not None
    assert receipt.to_dict()["requires_email_verification"] is True


def test_register_agent_rejects_duplicate_license(services, make_agent):
    agent = make_agent()
    license_number = services.profiles.find_agent_profile(agent.id).license_number

    with pytest.raises(ConflictError):
        services.registration.register_agent(
            email="other.agent@example.com",
            password="AgentPass123",
            license_number=license_number.lower(),
        )
