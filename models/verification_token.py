"""VerificationToken model definition."""

from __future__ import annotations

from datetime import datetime

from . import db


class VerificationToken(db.Model):
    """One-time token proving control of a registered email address."""

    __tablename__ = "verification_tokens"

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(128), unique=True, nullable=False)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expiry_date = db.Column(db.DateTime, nullable=False, index=True)
    created_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        server_default=db.func.now(),
    )

    user = db.relationship("User")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return True once the expiry date is no longer strictly in the future."""

        return self.expiry_date <= (now or datetime.utcnow())

    @classmethod
    def find_by_token(cls, token: str) -> VerificationToken | None:
        return cls.query.filter_by(token=token).first()

    @classmethod
    def delete_by_user(cls, user_id: int) -> int:
        return cls.query.filter_by(user_id=user_id).delete(synchronize_session=False)

    @classmethod
    def delete_all_by_expiry_date_before(cls, cutoff: datetime) -> int:
        return cls.query.filter(cls.expiry_date <= cutoff).delete(
            synchronize_session=False
        )

    def __repr__(self) -> str:
        return f"<VerificationToken id={self.id} user_id={self.user_id}>"
