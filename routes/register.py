"""Registration blueprint for renters and agents."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request

from services import current_services
from utils.request_validation import parse_json_request

register_bp = Blueprint("register", __name__)


@register_bp.route("/renter", methods=["POST"])
def register_renter() -> tuple:
    """Register a renter; the referral code picks the flow."""
    payload = parse_json_request(request, required_keys=("email",))
    receipt = current_services().registration.register_renter(
        email=payload.get("email"),
        password=payload.get("password"),
        full_name=payload.get("full_name"),
        phone_number=payload.get("phone_number"),
        referral_code=payload.get("referral_code"),
        questionnaire=payload.get("questionnaire"),
    )
    return jsonify(receipt.to_dict()), HTTPStatus.CREATED


@register_bp.route("/agent", methods=["POST"])
def register_agent() -> tuple:
    """Register an agent who must verify their email and wait for activation."""
    payload = parse_json_request(
        request, required_keys=("email", "password", "license_number")
    )
    receipt = current_services().registration.register_agent(
        email=payload.get("email"),
        password=payload.get("password"),
        license_number=payload.get("license_number"),
        full_name=payload.get("full_name"),
        phone_number=payload.get("phone_number"),
        brokerage_name=payload.get("brokerage_name"),
        title=payload.get("title"),
    )
    return jsonify(receipt.to_dict()), HTTPStatus.CREATED
