"""Authentication blueprint: signup, login, verification, refresh and logout."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, request

from services import auth_service
from services.errors import InvalidToken, ValidationFailure
from utils.request_validation import parse_json_request
from utils.responses import error, success

auth_bp = Blueprint("auth", __name__)

BEARER_PREFIX = "Bearer "


@auth_bp.route("/check-email", methods=["GET"])
def check_email():
    """Report whether an email address is still available."""
    email = request.args.get("email", "")
    if not email.strip():
        raise ValidationFailure("Email must not be empty")

    if auth_service.is_email_registered(email):
        return error(
            "This email is already registered. Would you like to login instead?",
            HTTPStatus.CONFLICT,
        )
    return success("Email is available")


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """Register a new user with email, username and password."""
    payload = parse_json_request(request, allow_empty=True)
    result = auth_service.register_user(payload)
    return success("User registered", result, HTTPStatus.CREATED)


@auth_bp.route("/verify", methods=["GET"])
def verify():
    """Verify an email address using the token sent to it."""
    token = request.args.get("token", "")
    auth_service.verify_email(token)
    return success("User verified", code=HTTPStatus.CREATED)


@auth_bp.route("/verify/resend", methods=["POST"])
def resend_verification():
    """Issue a fresh verification link for an unverified account."""
    payload = parse_json_request(request)
    auth_service.resend_verification(payload.get("email"))
    return success("Verification email sent")


@auth_bp.route("/login", methods=["POST"])
def login():
    """Authenticate a user and return access and refresh tokens."""
    payload = parse_json_request(request, allow_empty=True)
    result = auth_service.login_user(payload)
    return success("Login successful", result)


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    """Exchange a refresh token for a new access/refresh token pair."""
    payload = parse_json_request(request, allow_empty=True)
    refresh_token = payload.get("refreshToken")
    if not isinstance(refresh_token, str) or not refresh_token:
        raise InvalidToken("Refresh token is missing")

    result = auth_service.refresh_access_token(refresh_token)
    return success("Token refreshed", result)


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """Invalidate the refresh token given in the Authorization header."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(BEARER_PREFIX):
        raise InvalidToken("Refresh token is missing or malformed")

    auth_service.logout(auth_header[len(BEARER_PREFIX):])
    return success("Logged out successfully", "Refresh token invalidated")
