"""
Rate limiting module.

In-memory fixed-window attempt counters keyed by strings such as
"auth:<email>" or "register:<ip>".

Public API:
- IRateLimiter: Interface for rate limit checks
- RateLimiter: Process-local implementation with periodic sweep
- RateLimitPolicy and the fixed policy table
"""

from .interfaces import IRateLimiter
from .models import (
    RateLimitEntry,
    RateLimitResult,
    RateLimitPolicy,
    LOGIN_POLICY,
    REGISTER_POLICY,
    FORGOT_PASSWORD_POLICY,
    RESET_PASSWORD_POLICY,
    VERIFY_EMAIL_POLICY,
    CHANGE_PASSWORD_POLICY,
    api_policy,
    retry_after_minutes,
    retry_after_seconds,
)
from .service import RateLimiter

__all__ = [
    # Interface
    "IRateLimiter",
    # Implementation
    "RateLimiter",
    # Models
    "RateLimitEntry",
    "RateLimitResult",
    "RateLimitPolicy",
    # Policies
    "LOGIN_POLICY",
    "REGISTER_POLICY",
    "FORGOT_PASSWORD_POLICY",
    "RESET_PASSWORD_POLICY",
    "VERIFY_EMAIL_POLICY",
    "CHANGE_PASSWORD_POLICY",
    "api_policy",
    # Helpers
    "retry_after_minutes",
    "retry_after_seconds",
]
