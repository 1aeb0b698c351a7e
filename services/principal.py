"""The authenticated identity passed explicitly into service calls."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """Identity carried by an access token."""

    id: int
    email: str

    @classmethod
    def from_claims(cls, claims: dict) -> Principal:
        return cls(id=int(claims["uid"]), email=claims["sub"])
