"""Domain errors raised by the service layer.

Each error kind is mapped to an HTTP status exactly once, by the error
handler registered in :mod:`app`. Messages of domain errors are shown to the
client verbatim; :class:`UnexpectedError` always carries a generic message.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors the HTTP boundary knows how to render."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None, errors: dict | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationFailure(ServiceError):
    default_message = "Validation failed"


class Conflict(ServiceError):
    default_message = "Resource already exists"


class NotFound(ServiceError):
    default_message = "Resource not found"


class InvalidCredentials(ServiceError):
    default_message = "Invalid email or password"


class InvalidToken(ServiceError):
    default_message = "Invalid token"


class Forbidden(ServiceError):
    default_message = "You do not have permission to access this resource"


class UnexpectedError(ServiceError):
    default_message = "An unexpected error occurred"

    def __init__(self) -> None:
        # Internal details stay in the logs, never in the response.
        super().__init__()
