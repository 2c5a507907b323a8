"""
Auth event data models.

These models define the events recorded by the auth orchestrator at each
decision point and the entries kept in the in-memory event log.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class AuthEventType(str, Enum):
    """Kinds of authentication events."""

    # Login events
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGIN_RATE_LIMITED = "LOGIN_RATE_LIMITED"
    LOGOUT = "LOGOUT"

    # Account events
    ACCOUNT_CREATED = "ACCOUNT_CREATED"
    ACCOUNT_DELETED = "ACCOUNT_DELETED"

    # Email events
    EMAIL_VERIFIED = "EMAIL_VERIFIED"
    EMAIL_VERIFICATION_SENT = "EMAIL_VERIFICATION_SENT"

    # Password events
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PASSWORD_CHANGE_FAILED = "PASSWORD_CHANGE_FAILED"
    PASSWORD_RESET_REQUESTED = "PASSWORD_RESET_REQUESTED"
    PASSWORD_RESET_SUCCESS = "PASSWORD_RESET_SUCCESS"
    PASSWORD_RESET_FAILED = "PASSWORD_RESET_FAILED"

    # Security events
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    SESSION_INVALIDATED = "SESSION_INVALIDATED"


_WARNING_EVENTS = frozenset(
    {
        AuthEventType.LOGIN_FAILED,
        AuthEventType.LOGIN_RATE_LIMITED,
        AuthEventType.PASSWORD_CHANGE_FAILED,
        AuthEventType.PASSWORD_RESET_FAILED,
    }
)


def log_level_for(event_type: AuthEventType) -> int:
    """Map an event kind to a stdlib logging level."""
    if event_type is AuthEventType.SUSPICIOUS_ACTIVITY:
        return logging.ERROR
    if event_type in _WARNING_EVENTS:
        return logging.WARNING
    return logging.INFO


class AuthEvent(BaseModel):
    """An authentication event as reported by the caller."""

    type: AuthEventType = Field(..., description="Event kind")
    email: Optional[str] = Field(None, description="Email the event concerns")
    user_id: Optional[str] = Field(None, description="User ID, when known")
    ip: Optional[str] = Field(None, description="Originating client IP")
    user_agent: Optional[str] = Field(None, description="Client user agent")
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class AuthLogEntry(AuthEvent):
    """An event as stored in the log, stamped by the server."""

    timestamp: datetime = Field(..., description="When the event was logged (UTC)")
    environment: str = Field(default="development")


class SuspicionReport(BaseModel):
    """Result of the suspicious-activity heuristics for one email."""

    suspicious: bool
    reason: Optional[str] = None
