"""Full renter journey: register, fail and recover verification, then log in with a referral."""

from __future__ import annotations

from datetime import timedelta

from models.otp_record import OtpRecord
from services.email_dispatcher import VERIFICATION_CODE


def test_renter_journey(client, services, outbox, clock, make_agent):
    agent = make_agent(referral_code="AGT-ABCDEFGH")

    response = client.post("/register/renter", json={"email": "a@x.com", "password": "RenterPass1"})
    assert response.status_code == 201
    user_id = response.get_json()["user"]["id"]

    first = services.otp_store.find_current(user_id, "email_verification")
    assert len(first.code) == 4
    assert first.attempts == 0
    assert first.expires_at - first.created_at == timedelta(minutes=10)

    wrong = "0000" if first.code != "0000" else "1111"
    kinds = []
    for _ in range(5):
        response = client.post("/auth/verify-email", json={"email": "a@x.com", "code": wrong})
        kinds.append(response.get_json()["code"])
    assert kinds == ["Mismatch"] * 5

    response = client.post("/auth/verify-email", json={"email": "a@x.com", "code": first.code})
    assert response.get_json()["code"] == "MaxAttemptsExceeded"

    clock.advance(seconds=61)
    response = client.post("/auth/resend-verification", json={"email": "a@x.com"})
    assert response.status_code == 200

    second = services.otp_store.find_current(user_id, "email_verification")
    assert second.id != first.id
    assert second.attempts == 0
    assert db_record(first.id).invalidated is True
    code = outbox.latest(VERIFICATION_CODE, "a@x.com").context["code"]
    assert code == second.code

    response = client.post("/auth/verify-email", json={"email": "a@x.com", "code": code})
    assert response.status_code == 200
    assert response.get_json()["user"]["email_verified"] is True

    response = client.post("/auth/login", json={"email": "a@x.com", "password": "RenterPass1"})
    assert response.status_code == 403
    assert response.get_json()["code"] == "ReferralRequired"
    assert response.get_json()["default_agent"]["id"] == agent.id

    response = client.post(
        "/auth/login",
        json={"email": "a@x.com", "password": "RenterPass1", "referral_code": "AGT-ABCDEFGH"},
    )
    assert response.status_code == 200
    body = response.get_json()
    assert body["role"] == "renter"
    assert body["referral_info"]["referrer"]["id"] == agent.id

    assert services.profiles.find_renter_profile(user_id).referred_by_agent_id == agent.id
    assert services.identities.find_by_id(agent.id).total_referrals == 1


def db_record(record_id: int) -> OtpRecord:
    return OtpRecord.query.filter_by(id=record_id).one()
