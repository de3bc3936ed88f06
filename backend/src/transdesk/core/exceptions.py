"""Centralized exception hierarchy for the application.

All custom exceptions inherit from AppException, which provides:
- Consistent error response format
- HTTP status codes
- Machine-readable error codes
- Optional details dict for additional context

The taxonomy used by the translation core is NotFound, Conflict,
Validation and Internal. The exception handler in main.py converts
these to JSON responses.
"""

from typing import Any

# Substrings storage engines put in unique-violation messages
_DUPLICATE_KEY_MARKERS = (
    "duplicate entry",
    "duplicate key",
    "unique constraint",
    "idx_translation_unique",
)


class AppException(Exception):
    """Base exception for all application errors.

    - message: Human-readable error description
    - error_code: Machine-readable code (e.g., "TRANSLATION_EXISTS")
    - status_code: HTTP status code
    - details: Optional dict with additional context
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dict for JSON serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class AuthenticationError(AppException):
    """No authenticated actor was supplied by the upstream gateway."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "AUTH_REQUIRED", 401)


class ResourceNotFoundError(AppException):
    """Requested resource does not exist."""

    def __init__(self, resource: str, identifier: str | None = None):
        msg = f"{resource} not found"
        if identifier:
            msg = f"{resource} not found: {identifier}"
        super().__init__(
            msg,
            f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            404,
            {"resource": resource, "id": identifier}
            if identifier
            else {"resource": resource},
        )


class ConflictError(AppException):
    """Uniqueness violation on create, or a duplicate inside a batch."""

    def __init__(
        self,
        resource: str,
        message: str | None = None,
        *,
        conflicts: list[dict[str, Any]] | None = None,
    ):
        details: dict[str, Any] = {"resource": resource}
        if conflicts:
            details["conflicts"] = conflicts
        super().__init__(
            message or f"{resource} already exists",
            f"{resource.upper().replace(' ', '_')}_EXISTS",
            409,
            details,
        )


class ValidationError(AppException):
    """Request validation failed (beyond Pydantic's automatic validation)."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message,
            "VALIDATION_ERROR",
            422,
            {"field": field} if field else {},
        )


class InternalError(AppException):
    """Unexpected storage failure."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, "INTERNAL_ERROR", 500)


def is_duplicate_key_error(exc: BaseException | None) -> bool:
    """Check whether a storage error is a unique-constraint violation."""
    if exc is None:
        return False
    text = str(exc).lower()
    return any(marker in text for marker in _DUPLICATE_KEY_MARKERS)
