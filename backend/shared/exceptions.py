"""
Base exception classes for the Progressor backend.

Each module should define its own exceptions that inherit from these bases.
Every class carries an ErrorKind so the HTTP boundary can translate errors
with a single table lookup instead of a chain of isinstance checks.
"""

from enum import Enum
from typing import Optional, Any


class ErrorKind(str, Enum):
    """Coarse error categories understood by the API boundary."""

    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    EXTERNAL_SERVICE = "external_service"
    INTERNAL = "internal"


class ProgressorError(Exception):
    """
    Base exception for all Progressor errors.

    All custom exceptions should inherit from this class.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(ProgressorError):
    """Resource not found."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(ProgressorError):
    """Input validation failed."""

    kind = ErrorKind.VALIDATION


class AuthenticationError(ProgressorError):
    """Authentication failed (invalid or missing credentials)."""

    kind = ErrorKind.AUTHENTICATION


class AuthorizationError(ProgressorError):
    """Authorization failed (insufficient permissions)."""

    kind = ErrorKind.AUTHORIZATION


class ConflictError(ProgressorError):
    """Resource already exists (e.g. duplicate email)."""

    kind = ErrorKind.CONFLICT


class RateLimitError(ProgressorError):
    """
    Too many attempts for a rate-limited action.

    Only a human-readable wait estimate goes into the message; the exact
    remaining time is kept on the instance for the Retry-After header.
    """

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str = "Too many requests. Please wait.",
        retry_after_ms: int = 0,
        code: Optional[str] = "RATE_LIMIT_EXCEEDED",
    ):
        super().__init__(message, code)
        self.retry_after_ms = max(0, retry_after_ms)


class ExternalServiceError(ProgressorError):
    """Error communicating with an external service."""

    kind = ErrorKind.EXTERNAL_SERVICE

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
