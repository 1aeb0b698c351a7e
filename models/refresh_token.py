"""RefreshToken model definition."""

from __future__ import annotations

from datetime import datetime

from . import db


class RefreshToken(db.Model):
    """Tracks an issued refresh JWT by its ``jti`` until it is rotated or revoked."""

    __tablename__ = "refresh_tokens"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(64), unique=True, nullable=False)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    created_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=db.func.now(),
    )

    user = db.relationship("User")

    @classmethod
    def find_by_jti(cls, jti: str) -> RefreshToken | None:
        return cls.query.filter_by(jti=jti).first()

    @classmethod
    def delete_by_user(cls, user_id: int) -> int:
        return cls.query.filter_by(user_id=user_id).delete(synchronize_session=False)

    @classmethod
    def delete_expired(cls, cutoff: datetime) -> int:
        return cls.query.filter(cls.expires_at <= cutoff).delete(
            synchronize_session=False
        )

    def __repr__(self) -> str:
        return f"<RefreshToken id={self.id} user_id={self.user_id}>"
