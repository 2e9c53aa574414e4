"""Admin blueprint for agent activation."""

from __future__ import annotations

from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required
from werkzeug.exceptions import Forbidden, NotFound

from models.user import User
from services import current_services

admin_bp = Blueprint("admin", __name__)


def _require_admin() -> User:
    identity = get_jwt_identity()
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise NotFound("User not found.") from None
    user = current_services().identities.find_by_id(user_id)
    if user is None or user.is_deleted:
        raise NotFound("User not found.")
    if user.role != "admin":
        raise Forbidden("Admin privileges required.")
    return user


def _agent_payload(user: User) -> dict:
    profile = current_services().profiles.find_agent_profile(user.id)
    return {"user": user.to_dict(), "agent": profile.to_dict() if profile else None}


@admin_bp.route("/agents/<int:user_id>/activate", methods=["POST"])
@jwt_required()
def activate_agent(user_id: int):
    """Allow an agent to log in and refresh tokens."""

    _require_admin()
    agent = current_services().accounts.set_agent_active(user_id, True)
    return jsonify({"message": "Agent activated.", **_agent_payload(agent)})


@admin_bp.route("/agents/<int:user_id>/deactivate", methods=["POST"])
@jwt_required()
def deactivate_agent(user_id: int):
    _require_admin()
    agent = current_services().accounts.set_agent_active(user_id, False)
    return jsonify({"message": "Agent deactivated.", **_agent_payload(agent)})
