"""
Auth event module interfaces.

The auth orchestrator writes through IAuthEventLog; production deployments
can forward entries elsewhere by supplying an IAuthEventSink.
"""

from typing import Protocol, runtime_checkable

from .models import AuthEvent, AuthEventType, AuthLogEntry, SuspicionReport


@runtime_checkable
class IAuthEventSink(Protocol):
    """Destination for log entries outside the process (log service, SIEM)."""

    def send(self, entry: AuthLogEntry) -> None:
        """Forward one entry. Must not raise for delivery failures."""
        ...


@runtime_checkable
class IAuthEventLog(Protocol):
    """
    Append-only record of authentication events.

    Entries are kept in insertion order, which is also time order.
    """

    def log(self, event: AuthEvent) -> AuthLogEntry:
        """Append an event, stamping it with the current time."""
        ...

    def events_for_user(self, user_id: str, limit: int = 50) -> list[AuthLogEntry]:
        """Most recent events for a user, newest first."""
        ...

    def events_by_type(self, event_type: AuthEventType, limit: int = 100) -> list[AuthLogEntry]:
        """Most recent events of a kind, newest first."""
        ...

    def count_failed_logins(self, email: str, window_ms: int = 15 * 60 * 1000) -> int:
        """Number of LOGIN_FAILED events for an email in the trailing window."""
        ...

    def detect_suspicious(self, email: str) -> SuspicionReport:
        """Apply the suspicious-activity heuristics to an email's last hour."""
        ...

    def cleanup(self, max_age_ms: int = 30 * 24 * 60 * 60 * 1000) -> int:
        """Remove entries older than max_age_ms; return how many were removed."""
        ...
