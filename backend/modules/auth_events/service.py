"""
In-memory auth event log.

Keeps a bounded ring buffer of events for the suspicious-activity
heuristics and the per-user activity view. Every entry is also written to
the standard logging tree at a level derived from its kind.
"""

import logging
from collections import deque
from typing import Optional

from shared.clock import Clock, MINUTE_MS, HOUR_MS, DAY_MS, system_clock, to_datetime
from shared.tasks import PeriodicTask

from .interfaces import IAuthEventLog, IAuthEventSink
from .models import (
    AuthEvent,
    AuthEventType,
    AuthLogEntry,
    SuspicionReport,
    log_level_for,
)

logger = logging.getLogger(__name__)

MAX_LOG_ENTRIES = 10_000
DEFAULT_FAILED_LOGIN_WINDOW_MS = 15 * MINUTE_MS
DEFAULT_RETENTION_MS = 30 * DAY_MS
SUSPICION_WINDOW_MS = HOUR_MS

SUSPICIOUS_FAILED_LOGINS = 10
SUSPICIOUS_DISTINCT_IPS = 3
SUSPICIOUS_RESET_REQUESTS = 5


class NullEventSink(IAuthEventSink):
    """Sink that drops everything."""

    def send(self, entry: AuthLogEntry) -> None:
        return None


class AuthEventLog(IAuthEventLog):
    """
    Bounded, time-ordered event buffer.

    Once `max_entries` is reached the oldest entry is evicted for each new
    one. Timestamps come from the injected clock, so insertion order is also
    time order and cleanup() is a prefix cut.
    """

    def __init__(
        self,
        max_entries: int = MAX_LOG_ENTRIES,
        clock: Clock = system_clock,
        sink: Optional[IAuthEventSink] = None,
        environment: str = "development",
        retention_ms: int = DEFAULT_RETENTION_MS,
        cleanup_interval_ms: int = HOUR_MS,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: deque[AuthLogEntry] = deque(maxlen=max_entries)
        self._clock = clock
        self._sink = sink or NullEventSink()
        self._environment = environment
        self._retention_ms = retention_ms
        self._cleaner = PeriodicTask(
            "auth-log-cleanup", cleanup_interval_ms / 1000, self._scheduled_cleanup
        )

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen

    def __len__(self) -> int:
        return len(self._entries)

    def log(self, event: AuthEvent) -> AuthLogEntry:
        entry = AuthLogEntry(
            **event.model_dump(),
            timestamp=to_datetime(self._clock()),
            environment=self._environment,
        )
        self._entries.append(entry)

        logger.log(
            log_level_for(entry.type),
            "[AUTH] %s email=%s user_id=%s ip=%s %s",
            entry.type.value,
            entry.email,
            entry.user_id,
            entry.ip,
            entry.metadata or "",
        )

        try:
            self._sink.send(entry)
        except Exception:
            logger.exception("Failed to forward auth event %s", entry.type.value)

        return entry

    def events_for_user(self, user_id: str, limit: int = 50) -> list[AuthLogEntry]:
        return self._latest((e for e in reversed(self._entries) if e.user_id == user_id), limit)

    def events_by_type(self, event_type: AuthEventType, limit: int = 100) -> list[AuthLogEntry]:
        return self._latest((e for e in reversed(self._entries) if e.type == event_type), limit)

    def count_failed_logins(
        self, email: str, window_ms: int = DEFAULT_FAILED_LOGIN_WINDOW_MS
    ) -> int:
        cutoff = to_datetime(self._clock() - window_ms)
        return sum(
            1
            for e in self._entries
            if e.email == email and e.type == AuthEventType.LOGIN_FAILED and e.timestamp > cutoff
        )

    def detect_suspicious(self, email: str) -> SuspicionReport:
        cutoff = to_datetime(self._clock() - SUSPICION_WINDOW_MS)
        recent = [e for e in self._entries if e.email == email and e.timestamp > cutoff]

        failed = [e for e in recent if e.type == AuthEventType.LOGIN_FAILED]
        distinct_ips = {e.ip for e in failed if e.ip}
        if len(failed) >= SUSPICIOUS_FAILED_LOGINS and len(distinct_ips) >= SUSPICIOUS_DISTINCT_IPS:
            return SuspicionReport(
                suspicious=True,
                reason="Multiple failed logins from different IPs",
            )

        resets = [e for e in recent if e.type == AuthEventType.PASSWORD_RESET_REQUESTED]
        if len(resets) >= SUSPICIOUS_RESET_REQUESTS:
            return SuspicionReport(
                suspicious=True,
                reason="Excessive password reset requests",
            )

        return SuspicionReport(suspicious=False)

    def cleanup(self, max_age_ms: int = DEFAULT_RETENTION_MS) -> int:
        cutoff = to_datetime(self._clock() - max_age_ms)
        removed = 0
        while self._entries and self._entries[0].timestamp <= cutoff:
            self._entries.popleft()
            removed += 1
        if removed:
            logger.info("Removed %d auth log entries older than %d ms", removed, max_age_ms)
        return removed

    def clear(self) -> None:
        self._entries.clear()

    def start(self) -> None:
        """Start periodic retention cleanup on the running event loop."""
        self._cleaner.start()

    async def stop(self) -> None:
        await self._cleaner.stop()

    def _scheduled_cleanup(self) -> None:
        self.cleanup(self._retention_ms)

    @staticmethod
    def _latest(entries, limit: int) -> list[AuthLogEntry]:
        result: list[AuthLogEntry] = []
        if limit <= 0:
            return result
        for entry in entries:
            result.append(entry)
            if len(result) >= limit:
                break
        return result
