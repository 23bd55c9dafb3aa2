"""Domain error taxonomy shared by the services.

Services raise these at the point of violation; the transport layer in
``backend.main`` maps each kind to a status code and response body.
"""

from typing import Any


class DomainError(Exception):
    """Base class for failures that carry a short human-readable message."""

    default_message = 'Request failed.'

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DomainError):
    """Malformed or out-of-range input, with one message per offending field."""

    default_message = 'Validation failed'

    def __init__(self, errors: dict[str, str], message: str | None = None):
        super().__init__(message)
        self.errors = dict(errors)


class NotFoundError(DomainError):
    default_message = 'Resource not found.'


class ConflictError(DomainError):
    default_message = 'Request conflicts with existing data.'


class ForbiddenError(DomainError):
    default_message = 'Not authorized to perform this action.'


class UnauthorizedError(DomainError):
    default_message = 'Invalid credentials.'


class UnexpectedError(DomainError):
    default_message = 'Database unavailable. Verify DATABASE_URL and database credentials.'
