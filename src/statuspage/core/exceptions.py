"""Domain-specific exceptions.

All exceptions in the statuspage system inherit from StatusPageError,
making it easy to catch all system errors at the API boundary while still
being able to handle specific error types.

Each error carries the HTTP status it should be rendered with, so the
entrypoint can turn any of them into a structured ``{"error": message}``
response without a lookup table.
"""

from __future__ import annotations


class StatusPageError(Exception):
    """Base exception for all statuspage errors.

    Attributes:
        message: Client-visible description of the error.
        http_status: Status code used when the error reaches the API boundary.
    """

    http_status: int = 500

    def __init__(self, message: str) -> None:
        """Initialize StatusPageError.

        Args:
            message: Client-visible description of the error.
        """
        super().__init__(message)
        self.message = message


class ValidationError(StatusPageError):
    """Missing or invalid required fields.

    Raised before any write takes place, so a rejected command never
    leaves partial side effects behind.
    """

    http_status = 400


class AuthorizationError(StatusPageError):
    """Caller lacks the required role, permission or tenant scope."""

    http_status = 403


class AuthenticationError(AuthorizationError):
    """Caller identity could not be resolved (missing or invalid token)."""

    http_status = 401


class NotFoundError(StatusPageError):
    """Referenced entity id does not exist."""

    http_status = 404


class ConflictError(StatusPageError):
    """Unique constraint violation.

    Examples: duplicate organization slug, duplicate service name within
    an organization, duplicate user email.
    """

    http_status = 409


class TransientStorageError(StatusPageError):
    """Underlying storage is unavailable.

    Surfaced as a generic server error. The core never retries these.
    """

    http_status = 503
