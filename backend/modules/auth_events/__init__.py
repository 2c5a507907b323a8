"""
Auth event log module.

Public API:
- IAuthEventLog / IAuthEventSink: Interfaces
- AuthEventLog: Bounded in-memory implementation
- AuthEventType, AuthEvent, AuthLogEntry, SuspicionReport: Models
"""

from .interfaces import IAuthEventLog, IAuthEventSink
from .models import (
    AuthEventType,
    AuthEvent,
    AuthLogEntry,
    SuspicionReport,
    log_level_for,
)
from .service import AuthEventLog, NullEventSink

__all__ = [
    # Interfaces
    "IAuthEventLog",
    "IAuthEventSink",
    # Implementations
    "AuthEventLog",
    "NullEventSink",
    # Models
    "AuthEventType",
    "AuthEvent",
    "AuthLogEntry",
    "SuspicionReport",
    "log_level_for",
]
