"""Field validators for profile updates."""

from __future__ import annotations

import re
from urllib.parse import urlparse

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
MOBILE_PATTERN = re.compile(r"^\+?[0-9]{7,15}$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50


def validate_email(value) -> str | None:
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
        return "Email format is invalid"
    return None


def validate_username(value) -> str | None:
    if not isinstance(value, str) or not USERNAME_PATTERN.match(value):
        return "Username can only contain letters, numbers and underscores"
    if not USERNAME_MIN_LENGTH <= len(value) <= USERNAME_MAX_LENGTH:
        return (
            f"Username must be between {USERNAME_MIN_LENGTH} "
            f"and {USERNAME_MAX_LENGTH} characters"
        )
    return None


def validate_mobile(value) -> str | None:
    if not isinstance(value, str) or not MOBILE_PATTERN.match(value.strip()):
        return "Mobile number is not valid"
    return None


def validate_profile_url(value) -> str | None:
    if not isinstance(value, str):
        return "Profile URL must be a valid URL"
    parsed = urlparse(value.strip())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return "Profile URL must be a valid URL"
    return None


PROFILE_VALIDATORS = {
    "email": validate_email,
    "username": validate_username,
    "mobile": validate_mobile,
    "profileUrl": validate_profile_url,
}


def collect_profile_errors(payload: dict) -> dict[str, str]:
    """Validate every non-null profile field in ``payload``.

    All failures are returned together, keyed by field name.
    """

    errors: dict[str, str] = {}
    for field, validator in PROFILE_VALIDATORS.items():
        # A null value means "not supplied" and is skipped like a missing key.
        if payload.get(field) is None:
            continue
        message = validator(payload[field])
        if message:
            errors[field] = message
    return errors
