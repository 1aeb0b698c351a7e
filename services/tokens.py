"""Issuing and consuming verification and refresh tokens."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from flask import current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_jti,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from models import db
from models.refresh_token import RefreshToken
from models.user import User
from models.verification_token import VerificationToken

from .errors import InvalidToken

INVALID_REFRESH_MESSAGE = "Refresh token is invalid or expired"


def issue_verification_token(user: User) -> VerificationToken:
    """Create a verification token for ``user``; the caller commits."""

    ttl = timedelta(hours=int(current_app.config.get("VERIFICATION_TOKEN_TTL_HOURS", 24)))
    token = VerificationToken(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        expiry_date=datetime.utcnow() + ttl,
    )
    db.session.add(token)
    return token


def consume_verification_token(token: VerificationToken) -> bool:
    """Delete ``token`` and report whether this call was the one that removed it.

    Two concurrent verifications of the same token cannot both see a row
    count of one, so only a single caller goes on to mark the user verified.
    """

    deleted = VerificationToken.query.filter_by(id=token.id).delete(
        synchronize_session=False
    )
    return deleted == 1


def issue_token_pair(user: User) -> dict[str, str]:
    """Issue an access token and a tracked refresh token for ``user``."""

    access_token = create_access_token(
        identity=user.email, additional_claims={"uid": user.id}
    )
    refresh_token = create_refresh_token(identity=user.email)
    lifetime = current_app.config["JWT_REFRESH_TOKEN_EXPIRES"]
    db.session.add(
        RefreshToken(
            jti=get_jti(refresh_token),
            user_id=user.id,
            expires_at=datetime.utcnow() + lifetime,
        )
    )
    return {"token": access_token, "refreshToken": refresh_token}


def decode_refresh_token(raw_token: str) -> dict:
    """Return the claims of a well-formed, unexpired refresh JWT."""

    try:
        claims = decode_token(raw_token)
    except (JWTExtendedException, PyJWTError) as exc:
        current_app.logger.info("Rejected refresh token: %s", exc.__class__.__name__)
        raise InvalidToken(INVALID_REFRESH_MESSAGE) from exc

    if claims.get("type") != "refresh" or not claims.get("jti"):
        raise InvalidToken(INVALID_REFRESH_MESSAGE)
    return claims


def find_active_refresh_token(claims: dict) -> RefreshToken:
    """Return the stored row for ``claims`` or raise if it was revoked."""

    stored = RefreshToken.find_by_jti(claims["jti"])
    if stored is None or stored.expires_at <= datetime.utcnow():
        raise InvalidToken(INVALID_REFRESH_MESSAGE)
    return stored
