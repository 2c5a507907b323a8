"""
Shared infrastructure for Progressor backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- result: Tagged Ok/Err results for domain operations
- clock / tasks: Time source and periodic housekeeping

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import check_connection, get_supabase_client, reset_client_cache
from .exceptions import (
    ErrorKind,
    ProgressorError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    RateLimitError,
    ExternalServiceError,
)
from .models import AuthenticatedUser
from .result import Ok, Err, Result

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "check_connection",
    "ErrorKind",
    "ProgressorError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "RateLimitError",
    "ExternalServiceError",
    "AuthenticatedUser",
    "Ok",
    "Err",
    "Result",
]
