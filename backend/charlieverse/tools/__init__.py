"""Shared helpers for the backend.

- Error taxonomy reported on the wire (exceptions.py)
- Upload directory sandboxing and file naming (path_utils.py)
"""

from .exceptions import (
    CharlieverseError,
    DuplicateUser,
    Forbidden,
    InvalidCredentials,
    NotFound,
    PathValidationError,
    Unauthenticated,
    UpstreamUnavailable,
    ValidationFailure,
)
from .path_utils import ensure_within, resolve_upload_path, unique_upload_name

__all__ = [
    # Exceptions
    "CharlieverseError",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "DuplicateUser",
    "InvalidCredentials",
    "ValidationFailure",
    "UpstreamUnavailable",
    "PathValidationError",
    # Utilities
    "ensure_within",
    "resolve_upload_path",
    "unique_upload_name",
]
