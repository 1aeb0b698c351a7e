"""Delivery of verification links to users."""

from __future__ import annotations

from typing import Callable
from urllib.parse import urlencode

from flask import current_app

Notifier = Callable[[str, str], None]


def log_verification_link(email: str, link: str) -> None:
    """Default notifier: write the link to the application log."""

    current_app.logger.info("Verification link for %s: %s", email, link)


def build_verification_link(token: str) -> str:
    base = current_app.config.get("VERIFY_URL_BASE", "/auth/verify")
    return f"{base}?{urlencode({'token': token})}"


def send_verification_email(email: str, token: str) -> None:
    """Send the verification link through the configured notifier.

    ``VERIFICATION_NOTIFIER`` may hold any callable taking ``(email, link)``;
    exceptions it raises propagate to the caller.
    """

    notifier: Notifier = (
        current_app.config.get("VERIFICATION_NOTIFIER") or log_verification_link
    )
    notifier(email, build_verification_link(token))
