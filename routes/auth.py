"""Authentication blueprint: login, tokens, email verification, and passwords."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from services import current_services
from services.account_service import GENERIC_RESET_MESSAGE, GENERIC_VERIFICATION_MESSAGE
from utils.request_validation import parse_json_request

auth_bp = Blueprint("auth", __name__)


def _current_user_id() -> int:
    return int(get_jwt_identity())


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Admit a login through the ordered gates and return a role-shaped result."""
    payload = parse_json_request(request, required_keys=("email", "password"))
    result = current_services().login.login(
        payload.get("email"),
        payload.get("password"),
        payload.get("referral_code"),
    )
    return jsonify({"message": "Login successful.", **result.to_dict()}), HTTPStatus.OK


@auth_bp.route("/refresh", methods=["POST"])
def refresh() -> tuple:
    payload = parse_json_request(request, required_keys=("refresh_token",))
    services = current_services()
    access_token = services.accounts.refresh(payload.get("refresh_token"))
    return (
        jsonify(
            {
                "access_token": access_token,
                "token_type": "Bearer",
                "expires_in": int(services.tokens.access_ttl.total_seconds()),
            }
        ),
        HTTPStatus.OK,
    )


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout() -> tuple:
    current_services().accounts.logout(_current_user_id())
    return jsonify({"message": "Logged out successfully."}), HTTPStatus.OK


@auth_bp.route("/verify-email", methods=["POST"])
def verify_email() -> tuple:
    """Verify the email OTP and activate the account."""
    payload = parse_json_request(request, required_keys=("email", "code"))
    user = current_services().accounts.verify_email(payload.get("email"), str(payload.get("code")))
    message = "Email verified successfully."
    if user.role == "agent":
        message += " An administrator will activate your agent account."
    return jsonify({"message": message, "user": user.to_dict()}), HTTPStatus.OK


@auth_bp.route("/resend-verification", methods=["POST"])
def resend_verification() -> tuple:
    payload = parse_json_request(request, required_keys=("email",))
    current_services().accounts.resend_verification(payload.get("email"))
    return jsonify({"message": GENERIC_VERIFICATION_MESSAGE}), HTTPStatus.OK


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password() -> tuple:
    payload = parse_json_request(request, required_keys=("email",))
    current_services().accounts.request_password_reset(payload.get("email"))
    return jsonify({"message": GENERIC_RESET_MESSAGE}), HTTPStatus.OK


@auth_bp.route("/resend-password-otp", methods=["POST"])
def resend_password_otp() -> tuple:
    payload = parse_json_request(request, required_keys=("email",))
    current_services().accounts.resend_password_otp(payload.get("email"))
    return jsonify({"message": GENERIC_RESET_MESSAGE}), HTTPStatus.OK


@auth_bp.route("/verify-otp", methods=["POST"])
def verify_otp() -> tuple:
    payload = parse_json_request(request, required_keys=("email", "code"))
    current_services().accounts.verify_reset_otp(payload.get("email"), str(payload.get("code")))
    return jsonify({"message": "Code verified. You can now reset your password."}), HTTPStatus.OK


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password() -> tuple:
    payload = parse_json_request(request, required_keys=("email", "code", "new_password"))
    current_services().accounts.reset_password(
        payload.get("email"),
        str(payload.get("code")),
        payload.get("new_password"),
    )
    return jsonify({"message": "Password reset successfully. You can now log in."}), HTTPStatus.OK


@auth_bp.route("/change-password", methods=["POST"])
@jwt_required()
def change_password() -> tuple:
    payload = parse_json_request(request, required_keys=("current_password", "new_password"))
    user = current_services().accounts.change_password(
        _current_user_id(),
        payload.get("current_password"),
        payload.get("new_password"),
    )
    return jsonify({"message": "Password changed successfully.", "user": user.to_dict()}), HTTPStatus.OK
