"""
In-memory rate limiter.

State is process-local: a restart clears every limit, and several worker
processes each keep their own counters.
"""

import logging

from shared.clock import Clock, MINUTE_MS, HOUR_MS, system_clock
from shared.tasks import PeriodicTask

from .interfaces import IRateLimiter
from .models import RateLimitEntry, RateLimitPolicy, RateLimitResult

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_MS = 5 * MINUTE_MS
DEFAULT_MAX_ENTRY_AGE_MS = HOUR_MS


class RateLimiter(IRateLimiter):
    """
    Fixed-window attempt counter.

    A window opens on the first attempt for a key and lasts `window_ms`.
    Attempts inside the window increment the count; the first attempt after
    it expires starts a new window. Entries untouched for longer than
    `max_entry_age_ms` are dropped by sweep() regardless of their window.
    """

    def __init__(
        self,
        clock: Clock = system_clock,
        sweep_interval_ms: int = DEFAULT_SWEEP_INTERVAL_MS,
        max_entry_age_ms: int = DEFAULT_MAX_ENTRY_AGE_MS,
    ):
        self._clock = clock
        self._store: dict[str, RateLimitEntry] = {}
        self._max_entry_age_ms = max_entry_age_ms
        self._sweeper = PeriodicTask(
            "rate-limit-sweep", sweep_interval_ms / 1000, self.sweep
        )

    def check(self, key: str, max_attempts: int, window_ms: int) -> RateLimitResult:
        if not key:
            raise ValueError("key must be a non-empty string")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")

        now = self._clock()
        entry = self._store.get(key)

        if entry is None or now - entry.first_attempt > window_ms:
            self._store[key] = RateLimitEntry(count=1, first_attempt=now, last_attempt=now)
            return RateLimitResult(allowed=True, remaining=max_attempts - 1)

        entry.count += 1
        entry.last_attempt = now

        if entry.count > max_attempts:
            retry_after_ms = max(0, window_ms - (now - entry.first_attempt))
            return RateLimitResult(allowed=False, remaining=0, retry_after_ms=retry_after_ms)

        return RateLimitResult(allowed=True, remaining=max_attempts - entry.count)

    def check_policy(self, policy: RateLimitPolicy, subject: str) -> RateLimitResult:
        return self.check(policy.key(subject), policy.max_attempts, policy.window_ms)

    def reset(self, key: str) -> None:
        self._store.pop(key, None)

    def count(self, key: str) -> int:
        entry = self._store.get(key)
        return entry.count if entry else 0

    def sweep(self) -> int:
        """
        Drop entries whose last attempt is older than the max entry age.

        Returns:
            Number of entries removed
        """
        cutoff = self._clock() - self._max_entry_age_ms
        stale = [key for key, entry in self._store.items() if entry.last_attempt < cutoff]
        for key in stale:
            del self._store[key]
        if stale:
            logger.debug("Swept %d stale rate limit entries", len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        """Drop all state."""
        self._store.clear()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        self._sweeper.start()

    async def stop(self) -> None:
        """Stop the periodic sweep and drop all state."""
        await self._sweeper.stop()
        self.clear()

    @property
    def sweeping(self) -> bool:
        return self._sweeper.running

