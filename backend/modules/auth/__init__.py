"""
Authentication module.

Credentials login, registration, password reset and change, email
verification and signed session tokens.

Public API:
- IAuthService / AuthService: Auth operations, each returning a Result
- ICredentialStore: Persistence boundary for user records
- PasswordHasher: bcrypt hashing
- SessionManager: Session token issue and validation
- Auth exceptions: InvalidCredentialsError, RateLimitExceededError, etc.
"""

from .interfaces import IAuthService, ICredentialStore
from .models import (
    Credential,
    NewCredential,
    SessionUser,
    SessionToken,
    SessionClaims,
    RegistrationResult,
    normalize_email,
)
from .exceptions import (
    INVALID_CREDENTIALS_MESSAGE,
    InvalidCredentialsError,
    MissingCredentialsError,
    RateLimitExceededError,
    SuspiciousActivityError,
    EmailAlreadyExistsError,
    InvalidTokenError,
    PasswordChangeError,
    InvalidSessionError,
    ExpiredSessionError,
    MissingSessionError,
    SessionNotConfiguredError,
)
from .passwords import PasswordHasher
from .repository import InMemoryCredentialStore, SupabaseCredentialRepository
from .service import AuthService
from .sessions import SessionManager

__all__ = [
    # Interfaces
    "IAuthService",
    "ICredentialStore",
    # Implementations
    "AuthService",
    "PasswordHasher",
    "SessionManager",
    "InMemoryCredentialStore",
    "SupabaseCredentialRepository",
    # Models
    "Credential",
    "NewCredential",
    "SessionUser",
    "SessionToken",
    "SessionClaims",
    "RegistrationResult",
    "normalize_email",
    # Exceptions
    "INVALID_CREDENTIALS_MESSAGE",
    "InvalidCredentialsError",
    "MissingCredentialsError",
    "RateLimitExceededError",
    "SuspiciousActivityError",
    "EmailAlreadyExistsError",
    "InvalidTokenError",
    "PasswordChangeError",
    "InvalidSessionError",
    "ExpiredSessionError",
    "MissingSessionError",
    "SessionNotConfiguredError",
]
