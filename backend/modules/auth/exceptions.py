"""
Authentication module exceptions.

Services return these inside Err results for expected failures; the API
error handlers translate them into HTTP responses.
"""

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    RateLimitError,
    ValidationError,
)
from modules.ratelimit import retry_after_minutes

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class InvalidCredentialsError(AuthenticationError):
    """
    Raised for an unknown email or a wrong password.

    Both cases produce the exact same payload so callers cannot tell
    which emails are registered.
    """

    def __init__(self):
        super().__init__(INVALID_CREDENTIALS_MESSAGE, code="INVALID_CREDENTIALS")


class MissingCredentialsError(AuthenticationError):
    """Raised when email or password is empty."""

    def __init__(self):
        super().__init__("Email and password are required", code="MISSING_CREDENTIALS")


class RateLimitExceededError(RateLimitError):
    """Raised when an auth action is over its rate limit."""

    def __init__(self, action: str, retry_after_ms: int):
        minutes = retry_after_minutes(retry_after_ms)
        super().__init__(
            f"Too many {action}. Try again in {minutes} minute{'s' if minutes != 1 else ''}.",
            retry_after_ms=retry_after_ms,
        )


class SuspiciousActivityError(AuthorizationError):
    """Raised when the event log flags an email as under attack."""

    def __init__(self):
        super().__init__(
            "Suspicious activity detected. Please try again later.",
            code="SUSPICIOUS_ACTIVITY",
        )


class EmailAlreadyExistsError(ConflictError):
    """Raised when registering an email that already has an account."""

    def __init__(self):
        super().__init__("This email address is already in use", code="EMAIL_EXISTS")


class InvalidTokenError(ValidationError):
    """Raised for unknown, expired or already used verification/reset tokens."""

    def __init__(self, message: str = "Invalid or expired link"):
        super().__init__(message, code="INVALID_TOKEN")


class PasswordChangeError(ValidationError):
    """Raised when an authenticated password change is refused."""

    def __init__(self, message: str, reason: str):
        super().__init__(
            message,
            code="PASSWORD_CHANGE_FAILED",
            details={"reason": reason},
        )


class InvalidSessionError(AuthenticationError):
    """Raised when a session token is invalid or malformed."""

    def __init__(self, message: str = "Invalid session token"):
        super().__init__(message, code="INVALID_SESSION")


class ExpiredSessionError(AuthenticationError):
    """Raised when a session token has expired."""

    def __init__(self, message: str = "Session has expired"):
        super().__init__(message, code="SESSION_EXPIRED")


class MissingSessionError(AuthenticationError):
    """Raised when no session token is provided."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="MISSING_SESSION")


class SessionNotConfiguredError(AuthenticationError):
    """Raised when the server has no session signing secret."""

    def __init__(self):
        super().__init__("Server authentication not configured", code="SESSION_NOT_CONFIGURED")
