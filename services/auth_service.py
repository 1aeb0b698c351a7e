"""Registration, login, email verification and refresh-token lifecycle."""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.refresh_token import RefreshToken
from models.user import User
from models.verification_token import VerificationToken

from . import tokens
from .errors import (
    Conflict,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    ServiceError,
    UnexpectedError,
    ValidationFailure,
)
from .notifications import send_verification_email


def _clean(value) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def _find_by_email(email: str) -> User | None:
    return User.query.filter(func.lower(User.email) == email.lower()).first()


def is_email_registered(email: str) -> bool:
    """Return whether an account already uses ``email``."""

    return _find_by_email(email.strip()) is not None


def register_user(payload: dict) -> str:
    """Create an unverified account and send its verification link."""

    email = _clean(payload.get("email"))
    username = _clean(payload.get("username"))
    password = payload.get("password")

    if not email or not username or not _clean(password):
        raise ValidationFailure("Email, username, and password cannot be empty or null")

    if _find_by_email(email) is not None:
        raise Conflict(f"User with email {email} already exists")
    if User.query.filter_by(username=username).first() is not None:
        raise Conflict(f"User with username {username} already exists")

    try:
        user = User(email=email, username=username)
        user.set_password(password)
        db.session.add(user)
        db.session.flush()

        verification = tokens.issue_verification_token(user)
        send_verification_email(user.email, verification.token)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise Conflict("User with that email or username already exists") from exc
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Error registering user %s", email)
        raise UnexpectedError() from exc

    current_app.logger.info("Registered user id=%s", user.id)
    return "User registered successfully"


def login_user(payload: dict) -> dict:
    """Authenticate with email and password and issue a token pair."""

    email = payload.get("email")
    password = payload.get("password")
    if email is None or password is None:
        raise ValidationFailure("Email and password cannot be null")

    try:
        user = _find_by_email(str(email).strip())
        if user is None or not user.check_password(str(password)):
            # Same error for both cases so callers cannot probe for accounts.
            raise InvalidCredentials("Invalid email or password")

        token_pair = tokens.issue_token_pair(user)
        db.session.commit()
    except InvalidCredentials:
        current_app.logger.info("Failed login attempt")
        raise
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Error during login")
        raise UnexpectedError() from exc

    return {
        **token_pair,
        "email": user.email,
        "message": "Login successful",
    }


def verify_email(raw_token: str) -> None:
    """Consume a verification token and mark its owner verified."""

    verification = VerificationToken.find_by_token(raw_token or "")
    if verification is None:
        raise InvalidToken("Invalid token")
    if verification.is_expired():
        raise InvalidToken("Verification token has expired")

    user = verification.user
    try:
        if not tokens.consume_verification_token(verification):
            db.session.rollback()
            raise InvalidToken("Invalid token")
        user.mark_verified()
        db.session.commit()
    except ServiceError:
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Error verifying email")
        raise UnexpectedError() from exc

    current_app.logger.info("Verified user id=%s", user.id)


def resend_verification(email: str) -> None:
    """Replace a user's outstanding verification tokens with a fresh one."""

    email = _clean(email)
    if not email:
        raise ValidationFailure("Email must not be empty")

    user = _find_by_email(email)
    if user is None:
        raise NotFound(f"User not found with email: {email}")
    if user.verified:
        raise Conflict("Email is already verified")

    try:
        VerificationToken.delete_by_user(user.id)
        verification = tokens.issue_verification_token(user)
        send_verification_email(user.email, verification.token)
        db.session.commit()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Error re-sending verification email")
        raise UnexpectedError() from exc


def refresh_access_token(raw_token: str) -> dict:
    """Rotate a refresh token: revoke the presented one and issue a new pair."""

    if not raw_token or not raw_token.strip():
        raise InvalidToken("Refresh token is missing")

    claims = tokens.decode_refresh_token(raw_token.strip())
    stored = tokens.find_active_refresh_token(claims)
    user = stored.user

    try:
        revoked = RefreshToken.query.filter_by(id=stored.id).delete(
            synchronize_session=False
        )
        if revoked != 1:
            db.session.rollback()
            raise InvalidToken(tokens.INVALID_REFRESH_MESSAGE)
        token_pair = tokens.issue_token_pair(user)
        db.session.commit()
    except ServiceError:
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Error refreshing access token")
        raise UnexpectedError() from exc

    current_app.logger.info("Rotated refresh token for user id=%s", user.id)
    return {
        **token_pair,
        "email": user.email,
        "message": "Token refreshed",
    }


def logout(raw_token: str) -> None:
    """Revoke the given refresh token."""

    if not raw_token or not raw_token.strip():
        raise InvalidToken("Refresh token is missing or malformed")

    claims = tokens.decode_refresh_token(raw_token.strip())
    stored = tokens.find_active_refresh_token(claims)
    user_id = stored.user_id

    try:
        revoked = RefreshToken.query.filter_by(id=stored.id).delete(
            synchronize_session=False
        )
        if revoked != 1:
            db.session.rollback()
            raise InvalidToken(tokens.INVALID_REFRESH_MESSAGE)
        db.session.commit()
    except ServiceError:
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Error during logout")
        raise UnexpectedError() from exc

    current_app.logger.info("Logged out user id=%s", user_id)


def purge_expired_tokens(now: datetime | None = None) -> dict[str, int]:
    """Delete expired verification and refresh tokens."""

    cutoff = now or datetime.utcnow()
    removed = {
        "verification_tokens": VerificationToken.delete_all_by_expiry_date_before(cutoff),
        "refresh_tokens": RefreshToken.delete_expired(cutoff),
    }
    db.session.commit()
    current_app.logger.info(
        "Purged %(verification_tokens)s verification and %(refresh_tokens)s refresh tokens",
        removed,
    )
    return removed
