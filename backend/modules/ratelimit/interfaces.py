"""
Rate limiting module interface.

The auth module depends on IRateLimiter, not the in-memory implementation,
so a shared store (e.g. Redis) can replace it for multi-process deployments.
"""

from typing import Protocol, runtime_checkable

from .models import RateLimitPolicy, RateLimitResult


@runtime_checkable
class IRateLimiter(Protocol):
    """Sliding-window attempt counter keyed by an arbitrary string."""

    def check(self, key: str, max_attempts: int, window_ms: int) -> RateLimitResult:
        """
        Record an attempt for `key` and report whether it is allowed.

        Args:
            key: Non-empty identifier, e.g. "auth:user@example.com"
            max_attempts: Attempts allowed per window (>= 1)
            window_ms: Window length in milliseconds (> 0)

        Returns:
            RateLimitResult; retry_after_ms is set only when rejected
        """
        ...

    def check_policy(self, policy: RateLimitPolicy, subject: str) -> RateLimitResult:
        """Apply a named policy to `subject`."""
        ...

    def reset(self, key: str) -> None:
        """Forget all attempts for `key`."""
        ...

    def count(self, key: str) -> int:
        """Current attempt count for `key`, or 0. No side effects."""
        ...
