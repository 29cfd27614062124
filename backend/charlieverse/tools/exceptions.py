from __future__ import annotations


class CharlieverseError(Exception):
    """Base error carrying the HTTP status it is reported with."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(CharlieverseError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(CharlieverseError):
    status_code = 403
    default_message = "Access denied"


class NotFound(CharlieverseError):
    status_code = 404
    default_message = "Not found"


class DuplicateUser(CharlieverseError):
    status_code = 400
    default_message = "User already exists"


class InvalidCredentials(CharlieverseError):
    status_code = 400
    default_message = "Invalid credentials"


class ValidationFailure(CharlieverseError):
    status_code = 400
    default_message = "Missing required fields"


class UpstreamUnavailable(CharlieverseError):
    """Raised when the database, the upload directory or the mail transport fails."""

    status_code = 503
    default_message = "Service temporarily unavailable"


class PathValidationError(NotFound):
    """Raised when a requested path is outside the upload sandbox."""

    default_message = "File not found"
