"""Users blueprint for reading, updating and deleting one's own profile."""

from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import get_jwt, jwt_required

from services import user_service
from services.principal import Principal
from utils.request_validation import parse_json_request
from utils.responses import success

users_bp = Blueprint("users", __name__)


def _current_principal() -> Principal:
    return Principal.from_claims(get_jwt())


@users_bp.route("/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id: int):
    profile = user_service.get_user_by_id(_current_principal(), user_id)
    return success("User profile fetched", profile)


@users_bp.route("/<int:user_id>", methods=["PUT"])
@jwt_required()
def update_user(user_id: int):
    """Apply a partial update to the caller's profile."""
    payload = parse_json_request(request)
    profile = user_service.update_user_profile(_current_principal(), user_id, payload)
    return success("User profile updated", profile)


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@jwt_required()
def delete_user(user_id: int):
    user_service.delete_user(_current_principal(), user_id)
    return success("User deleted successfully")


@users_bp.route("/me", methods=["GET"])
@jwt_required()
def get_me():
    principal = _current_principal()
    return success(
        "User profile fetched", user_service.get_user_by_id(principal, principal.id)
    )


@users_bp.route("/me", methods=["PUT"])
@jwt_required()
def update_me():
    principal = _current_principal()
    payload = parse_json_request(request)
    profile = user_service.update_user_profile(principal, principal.id, payload)
    return success("User profile updated", profile)


@users_bp.route("/me", methods=["DELETE"])
@jwt_required()
def delete_me():
    principal = _current_principal()
    user_service.delete_user(principal, principal.id)
    return success("User deleted successfully")
