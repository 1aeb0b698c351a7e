"""Self-service profile operations.

Every call receives the authenticated :class:`Principal` explicitly; a user
may only read, change or delete their own record.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.refresh_token import RefreshToken
from models.user import User
from models.verification_token import VerificationToken
from utils.validators import collect_profile_errors

from .errors import Conflict, Forbidden, NotFound, UnexpectedError, ValidationFailure
from .principal import Principal

# Request key -> model attribute.
PROFILE_FIELDS = {
    "email": "email",
    "username": "username",
    "mobile": "mobile",
    "profileUrl": "profile_url",
}


def _require_self(principal: Principal, user_id: int) -> None:
    if principal is None or principal.id != user_id:
        raise Forbidden("You do not have permission to access this resource")


def _get_user_or_404(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User not found with id: {user_id}")
    return user


def _ensure_unique(user: User, changes: dict) -> None:
    if "email" in changes:
        existing = User.query.filter(
            func.lower(User.email) == changes["email"].lower(), User.id != user.id
        ).first()
        if existing is not None:
            raise Conflict(f"User with email {changes['email']} already exists")
    if "username" in changes:
        existing = User.query.filter(
            User.username == changes["username"], User.id != user.id
        ).first()
        if existing is not None:
            raise Conflict(f"User with username {changes['username']} already exists")
    if "mobile" in changes:
        existing = User.query.filter(
            User.mobile == changes["mobile"], User.id != user.id
        ).first()
        if existing is not None:
            raise Conflict(f"User with mobile {changes['mobile']} already exists")


def get_user_by_id(principal: Principal, user_id: int) -> dict:
    _require_self(principal, user_id)
    return _get_user_or_404(user_id).to_profile()


def update_user_profile(principal: Principal, user_id: int, payload: dict) -> dict:
    """Apply a partial profile update and return the updated profile."""

    _require_self(principal, user_id)
    user = _get_user_or_404(user_id)

    errors = collect_profile_errors(payload)
    if errors:
        raise ValidationFailure("Validation failed", errors=errors)

    changes = {
        attribute: payload[key].strip()
        for key, attribute in PROFILE_FIELDS.items()
        if payload.get(key) is not None
    }
    _ensure_unique(user, changes)

    for attribute, value in changes.items():
        setattr(user, attribute, value)

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise Conflict("Profile conflicts with an existing user") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Error updating user id=%s", user_id)
        raise UnexpectedError() from exc

    current_app.logger.info("Updated profile for user id=%s", user_id)
    return user.to_profile()


def delete_user(principal: Principal, user_id: int) -> None:
    """Delete the account together with its outstanding tokens."""

    _require_self(principal, user_id)
    user = _get_user_or_404(user_id)

    try:
        VerificationToken.delete_by_user(user.id)
        RefreshToken.delete_by_user(user.id)
        db.session.delete(user)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Error deleting user id=%s", user_id)
        raise UnexpectedError() from exc

    current_app.logger.info("Deleted user id=%s", user_id)


def find_by_email(email: str) -> User | None:
    return User.query.filter(func.lower(User.email) == email.strip().lower()).first()


def promote_to_admin(email: str) -> User:
    user = find_by_email(email)
    if user is None:
        raise NotFound(f"User not found with email: {email}")
    user.promote_to_admin()
    db.session.commit()
    return user
