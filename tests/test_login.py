"""Tests for the ordered login gates."""

import pytest

from services.errors import (
    AccountInactiveError,
    AccountSuspendedError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidFormatError,
    InvalidRequestError,
    MismatchError,
    ReferralRequiredError,
)
from services.login import AdminLoginResult, AgentLoginResult, RenterLoginResult
from services.referral_codec import AGENT_REFERRAL, NORMAL


def _verified_renter(services, email="renter@example.com", referral_code=None):
    receipt = services.registration.register_renter(
        email=email, password="RenterPass1", referral_code=referral_code
    )
    return services.identities.update(
        receipt.user.id, email_verified=True, account_status="active"
    )


def test_unknown_email_and_wrong_password_look_the_same(services, make_admin):
    make_admin()

    with pytest.raises(InvalidCredentialsError) as unknown:
        services.login.login("nobody@example.com", "whatever")
    with pytest.raises(InvalidCredentialsError) as wrong:
        services.login.login("admin@example.com", "WrongPass1")

    assert unknown.value.description == wrong.value.description


def test_deleted_identity_is_invalid_credentials(services, make_admin):
    make_admin(is_deleted=True)

    with pytest.raises(InvalidCredentialsError):
        services.login.login("admin@example.com", "AdminPass123")


def test_status_gate_runs_before_password_check(services, make_admin):
    make_admin(account_status="suspended")

    with pytest.raises(AccountSuspendedError):
        services.login.login("admin@example.com", "WrongPass1")


def test_inactive_status(services, make_admin):
    make_admin(account_status="inactive")

    with pytest.raises(AccountInactiveError):
        services.login.login("admin@example.com", "AdminPass123")


def test_unverified_renter_cannot_log_in(services):
    services.registration.register_renter(email="pending@example.com", password="RenterPass1")

    with pytest.raises(EmailNotVerifiedError):
        services.login.login("pending@example.com", "RenterPass1")


def test_inactive_agent_profile_blocks_login(services, make_agent):
    make_agent(active=False)

    with pytest.raises(AccountInactiveError):
        services.login.login("agent@example.com", "AgentPass123")


def test_admin_login_result(services, make_admin, clock):
    admin = make_admin()

    result = services.login.login("ADMIN@example.com", "AdminPass123")

    assert isinstance(result, AdminLoginResult)
    assert result.user.id == admin.id
    assert result.user.last_login_at == clock.now
    assert result.to_dict()["role"] == "admin"


def test_agent_login_result_carries_title_and_link(services, make_agent):
    make_agent()

    result = services.login.login("agent@example.com", "AgentPass123")

    assert isinstance(result, AgentLoginResult)
    assert result.title == "Leasing Agent"
    assert result.login_link == "https://app.example/login"
    assert result.tokens.access_token


def test_renter_without_referrer_gets_default_agent(services, make_agent):
    agent = make_agent()
    _verified_renter(services)

    with pytest.raises(ReferralRequiredError) as excinfo:
        services.login.login("renter@example.com", "RenterPass1")

    payload = excinfo.value.to_payload()
    assert payload["code"] == "ReferralRequired"
    assert payload["default_agent"]["id"] == agent.id
    assert payload["default_agent"]["referral_code"] == agent.referral_code


def test_referral_required_without_any_agent(services):
    _verified_renter(services)

    with pytest.raises(ReferralRequiredError) as excinfo:
        services.login.login("renter@example.com", "RenterPass1")

    assert excinfo.value.extra["default_agent"] is None


def test_login_assigns_referrer_once(services, make_agent):
    agent = make_agent()
    renter = _verified_renter(services)

    result = services.login.login("renter@example.com", "RenterPass1", agent.referral_code)

    assert isinstance(result, RenterLoginResult)
    assert result.referral_info.registration_type == AGENT_REFERRAL
    assert result.referral_info.referrer.id == agent.id
    assert services.identities.find_by_id(agent.id).total_referrals == 1

    profile = services.profiles.find_renter_profile(renter.id)
    assert profile.referred_by_agent_id == agent.id

    again = services.login.login("renter@example.com", "RenterPass1")
    assert again.referral_info.referrer.id == agent.id
    assert services.identities.find_by_id(agent.id).total_referrals == 1


def test_login_with_same_code_is_idempotent(services, make_agent):
    agent = make_agent()
    _verified_renter(services, referral_code=agent.referral_code)

    result = services.login.login("renter@example.com", "RenterPass1", agent.referral_code)

    assert result.referral_info.referrer.id == agent.id
    assert services.identities.find_by_id(agent.id).total_referrals == 1


def test_renter_cannot_switch_referrer(services, make_agent):
    first = make_agent()
    second = make_agent(email="second.agent@example.com")
    renter = _verified_renter(services, referral_code=first.referral_code)

    with pytest.raises(MismatchError):
        services.login.login("renter@example.com", "RenterPass1", second.referral_code)

    profile = services.profiles.find_renter_profile(renter.id)
    assert profile.referred_by_agent_id == first.id
    assert services.identities.find_by_id(second.id).total_referrals == 0


def test_malformed_code_at_login(services):
    _verified_renter(services)

    with pytest.raises(InvalidFormatError):
        services.login.login("renter@example.com", "RenterPass1", "nope")


def test_failed_assignment_leaves_profile_unchanged(services, make_agent):
    agent = make_agent(account_status="suspended")
    renter = _verified_renter(services)

    with pytest.raises(InvalidRequestError):
        services.login.login("renter@example.com", "RenterPass1", agent.referral_code)

    profile = services.profiles.find_renter_profile(renter.id)
    assert profile.referrer_id is None
    assert profile.registration_type == NORMAL
