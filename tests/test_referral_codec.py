"""Tests for referral code parsing, validation, and generation."""

import pytest

from services.errors import InvalidFormatError, InvalidRequestError, NotFoundError
from services.referral_codec import (
    ADMIN_REFERRAL,
    AGENT_REFERRAL,
    CODE_PATTERN,
    NORMAL,
    referral_link,
)


@pytest.mark.parametrize("raw", [None, ""])
def test_missing_code_is_normal_registration(services, raw):
    parsed = services.codec.parse(raw)

    assert parsed.kind == NORMAL
    assert parsed.code is None
    assert parsed.is_referral is False


def test_prefixes_select_referral_kind(services):
    agent = services.codec.parse("AGT-ABCD1234")
    admin = services.codec.parse("ADM-Z9Y8X7W6")

    assert agent.kind == AGENT_REFERRAL
    assert agent.referrer_role == "agent"
    assert admin.kind == ADMIN_REFERRAL
    assert admin.referrer_role == "admin"


@pytest.mark.parametrize(
    "raw",
    [
        "agt-ABCD1234",
        "AGT-abcd1234",
        "AGT-ABC1234",
        "AGT-ABCD12345",
        "XYZ-ABCD1234",
        "AGTABCD1234",
        " AGT-ABCD1234",
        "AGT-ABCD1234\n",
        "   ",
    ],
)
def test_malformed_codes_are_rejected(services, raw):
    with pytest.raises(InvalidFormatError) as excinfo:
        services.codec.parse(raw)

    assert excinfo.value.kind == "InvalidFormat"


def test_validate_unknown_code(services):
    with pytest.raises(NotFoundError):
        services.codec.validate("AGT-00000000")


def test_validate_rejects_suspended_referrer(services, make_agent):
    agent = make_agent(account_status="suspended")

    with pytest.raises(InvalidRequestError):
        services.codec.validate(agent.referral_code)


def test_validate_rejects_deleted_referrer(services, make_agent):
    agent = make_agent(is_deleted=True)

    with pytest.raises(InvalidRequestError):
        services.codec.validate(agent.referral_code)


def test_validate_rejects_renter_holding_code(services):
    renter = services.identities.create(
        email="renter@example.com",
        password="RenterPass1",
        role="renter",
        referral_code="AGT-RENTER01",
    )

    with pytest.raises(InvalidRequestError):
        services.codec.validate(renter.referral_code)


def test_resolve_requires_prefix_to_match_owner_role(services, make_admin):
    admin = make_admin()
    forged = "AGT-" + admin.referral_code.split("-", 1)[1]
    services.identities.update(admin.id, referral_code=forged)

    with pytest.raises(InvalidRequestError):
        services.codec.resolve(services.codec.parse(forged))


def test_resolve_returns_referrer(services, make_agent):
    agent = make_agent()

    referrer = services.codec.resolve(services.codec.parse(agent.referral_code))

    assert referrer.id == agent.id


def test_generate_produces_unique_codes_per_role(services):
    agent_code = services.codec.generate("agent")
    admin_code = services.codec.generate("admin")

    assert CODE_PATTERN.fullmatch(agent_code)
    assert agent_code.startswith("AGT-")
    assert admin_code.startswith("ADM-")

    with pytest.raises(ValueError):
        services.codec.generate("renter")


def test_referral_link_points_at_signup():
    assert referral_link("https://app.example/", "AGT-ABCD1234") == (
        "https://app.example/signup?ref=AGT-ABCD1234"
    )
