"""
Rate limiting data models and the fixed policy table.
"""

import math
from dataclasses import dataclass
from typing import Optional
from pydantic import BaseModel, Field

from shared.clock import MINUTE_MS, HOUR_MS


@dataclass
class RateLimitEntry:
    """Attempt counter for one key. Timestamps are epoch milliseconds."""

    count: int
    first_attempt: int
    last_attempt: int


class RateLimitResult(BaseModel):
    """Outcome of a single rate limit check."""

    allowed: bool = Field(..., description="Whether the attempt may proceed")
    remaining: int = Field(..., ge=0, description="Attempts left in the current window")
    retry_after_ms: Optional[int] = Field(
        None, ge=0, description="Time until the window resets, set only when rejected"
    )

    model_config = {"frozen": True}


class RateLimitPolicy(BaseModel):
    """
    A named limit applied to keys of the form "<prefix>:<subject>".

    The subject is whatever the caller limits by: a normalized email,
    a client IP, or a user ID.
    """

    prefix: str = Field(..., min_length=1)
    max_attempts: int = Field(..., ge=1)
    window_ms: int = Field(..., gt=0)

    model_config = {"frozen": True}

    def key(self, subject: str) -> str:
        return f"{self.prefix}:{subject}"


# Login attempts per normalized email
LOGIN_POLICY = RateLimitPolicy(prefix="auth", max_attempts=5, window_ms=15 * MINUTE_MS)
# Registrations per client IP
REGISTER_POLICY = RateLimitPolicy(prefix="register", max_attempts=5, window_ms=HOUR_MS)
# Reset-link requests per client IP
FORGOT_PASSWORD_POLICY = RateLimitPolicy(
    prefix="forgot-password", max_attempts=3, window_ms=HOUR_MS
)
# Reset submissions per client IP
RESET_PASSWORD_POLICY = RateLimitPolicy(
    prefix="reset-password", max_attempts=5, window_ms=HOUR_MS
)
# Verification submissions per client IP
VERIFY_EMAIL_POLICY = RateLimitPolicy(prefix="verify-email", max_attempts=10, window_ms=HOUR_MS)
# Password changes per user
CHANGE_PASSWORD_POLICY = RateLimitPolicy(
    prefix="change-password", max_attempts=5, window_ms=HOUR_MS
)


def api_policy(max_requests: int, window_seconds: int) -> RateLimitPolicy:
    """General API policy, sized from settings."""
    return RateLimitPolicy(prefix="api", max_attempts=max_requests, window_ms=window_seconds * 1000)


def retry_after_minutes(retry_after_ms: Optional[int]) -> int:
    """Whole minutes to wait, rounded up, for user-facing messages."""
    return math.ceil((retry_after_ms or 0) / MINUTE_MS)


def retry_after_seconds(retry_after_ms: Optional[int]) -> int:
    """Whole seconds to wait, rounded up, for the Retry-After header."""
    return math.ceil((retry_after_ms or 0) / 1000)
