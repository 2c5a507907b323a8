"""Tests for the in-memory auth event log."""

import asyncio
import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from modules.auth_events.interfaces import IAuthEventLog
from modules.auth_events.models import AuthEvent, AuthEventType
from modules.auth_events.service import AuthEventLog

MINUTE = 60 * 1000
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def failed_login(email: str, ip: str) -> AuthEvent:
    return AuthEvent(type=AuthEventType.LOGIN_FAILED, email=email, ip=ip)


class TestLog:
    def test_implements_interface(self, event_log):
        assert isinstance(event_log, IAuthEventLog)

    def test_stamps_entry(self, event_log, clock):
        """Entries get the clock's time and the environment."""
        entry = event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, email="a@example.com"))

        assert entry.timestamp == datetime.fromtimestamp(clock() / 1000, tz=timezone.utc)
        assert entry.environment == "development"
        assert entry.email == "a@example.com"
        assert len(event_log) == 1

    def test_evicts_oldest_when_full(self, clock):
        """At capacity each new entry pushes out the oldest."""
        log = AuthEventLog(max_entries=3, clock=clock)
        for i in range(5):
            log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id=f"user-{i}"))

        assert len(log) == 3
        assert log.events_for_user("user-0") == []
        assert log.events_for_user("user-1") == []
        assert len(log.events_for_user("user-4")) == 1

    def test_default_capacity(self, event_log):
        assert event_log.max_entries == 10_000

    def test_rejects_zero_capacity(self, clock):
        with pytest.raises(ValueError):
            AuthEventLog(max_entries=0, clock=clock)

    def test_forwards_to_sink(self, clock):
        """Each entry is handed to the configured sink."""
        sink = MagicMock()
        log = AuthEventLog(clock=clock, sink=sink)

        entry = log.log(AuthEvent(type=AuthEventType.LOGOUT, user_id="user-1"))

        sink.send.assert_called_once_with(entry)

    def test_sink_failure_does_not_lose_entry(self, clock):
        """A failing sink is logged and the entry is still kept."""
        sink = MagicMock()
        sink.send.side_effect = RuntimeError("unreachable")
        log = AuthEventLog(clock=clock, sink=sink)

        log.log(AuthEvent(type=AuthEventType.LOGOUT, user_id="user-1"))

        assert len(log) == 1

    @pytest.mark.parametrize(
        "event_type,level",
        [
            (AuthEventType.LOGIN_SUCCESS, logging.INFO),
            (AuthEventType.LOGIN_FAILED, logging.WARNING),
            (AuthEventType.SUSPICIOUS_ACTIVITY, logging.ERROR),
        ],
    )
    def test_writes_log_record(self, event_log, caplog, event_type, level):
        """Entries are mirrored to the logging tree at their level."""
        with caplog.at_level(logging.INFO, logger="modules.auth_events.service"):
            event_log.log(AuthEvent(type=event_type, email="a@example.com"))

        record = next(r for r in caplog.records if "[AUTH]" in r.getMessage())
        assert record.levelno == level
        assert event_type.value in record.getMessage()


class TestQueries:
    def test_events_for_user_newest_first(self, event_log, clock):
        for event_type in (AuthEventType.LOGIN_SUCCESS, AuthEventType.PASSWORD_CHANGED, AuthEventType.LOGOUT):
            event_log.log(AuthEvent(type=event_type, user_id="user-1"))
            clock.advance(1000)
        event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="user-2"))

        events = event_log.events_for_user("user-1")

        assert [e.type for e in events] == [
            AuthEventType.LOGOUT,
            AuthEventType.PASSWORD_CHANGED,
            AuthEventType.LOGIN_SUCCESS,
        ]

    def test_events_for_user_limit(self, event_log):
        for _ in range(10):
            event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="user-1"))

        assert len(event_log.events_for_user("user-1", limit=3)) == 3
        assert event_log.events_for_user("user-1", limit=0) == []

    def test_events_by_type(self, event_log):
        event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="user-1"))
        event_log.log(failed_login("a@example.com", "1.1.1.1"))
        event_log.log(failed_login("b@example.com", "2.2.2.2"))

        events = event_log.events_by_type(AuthEventType.LOGIN_FAILED)

        assert [e.email for e in events] == ["b@example.com", "a@example.com"]

    def test_count_failed_logins_in_window(self, event_log, clock):
        """Only failures for this email inside the window are counted."""
        event_log.log(failed_login("a@example.com", "1.1.1.1"))
        clock.advance(20 * MINUTE)
        event_log.log(failed_login("a@example.com", "1.1.1.1"))
        event_log.log(failed_login("a@example.com", "1.1.1.1"))
        event_log.log(failed_login("b@example.com", "1.1.1.1"))
        event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, email="a@example.com"))

        assert event_log.count_failed_logins("a@example.com") == 2
        assert event_log.count_failed_logins("a@example.com", window_ms=HOUR) == 3


class TestDetectSuspicious:
    def test_clean_history(self, event_log):
        report = event_log.detect_suspicious("a@example.com")
        assert report.suspicious is False
        assert report.reason is None

    def test_failed_logins_from_many_ips(self, event_log):
        """Ten failures from three distinct IPs within an hour is suspicious."""
        for i in range(10):
            event_log.log(failed_login("a@example.com", f"10.0.0.{i % 3}"))

        report = event_log.detect_suspicious("a@example.com")

        assert report.suspicious is True
        assert report.reason == "Multiple failed logins from different IPs"

    def test_failed_logins_from_two_ips(self, event_log):
        """Ten failures from only two IPs is not enough."""
        for i in range(10):
            event_log.log(failed_login("a@example.com", f"10.0.0.{i % 2}"))

        assert event_log.detect_suspicious("a@example.com").suspicious is False

    def test_nine_failures_not_suspicious(self, event_log):
        for i in range(9):
            event_log.log(failed_login("a@example.com", f"10.0.0.{i}"))

        assert event_log.detect_suspicious("a@example.com").suspicious is False

    def test_excessive_reset_requests(self, event_log):
        for _ in range(5):
            event_log.log(AuthEvent(type=AuthEventType.PASSWORD_RESET_REQUESTED, email="a@example.com"))

        report = event_log.detect_suspicious("a@example.com")

        assert report.suspicious is True
        assert report.reason == "Excessive password reset requests"

    def test_old_events_ignored(self, event_log, clock):
        """Only the last hour counts."""
        for i in range(10):
            event_log.log(failed_login("a@example.com", f"10.0.0.{i}"))
        clock.advance(HOUR + 1)

        assert event_log.detect_suspicious("a@example.com").suspicious is False

    def test_other_emails_ignored(self, event_log):
        for i in range(10):
            event_log.log(failed_login("a@example.com", f"10.0.0.{i}"))

        assert event_log.detect_suspicious("b@example.com").suspicious is False


class TestCleanup:
    def test_removes_old_prefix(self, event_log, clock):
        event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="old"))
        clock.advance(31 * DAY)
        event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="new"))

        removed = event_log.cleanup()

        assert removed == 1
        assert len(event_log) == 1
        assert event_log.events_for_user("new")

    def test_removes_everything_when_all_old(self, event_log, clock):
        for _ in range(3):
            event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="user-1"))
        clock.advance(31 * DAY)

        assert event_log.cleanup() == 3
        assert len(event_log) == 0

    def test_custom_max_age(self, event_log, clock):
        event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="user-1"))
        clock.advance(2 * HOUR)

        assert event_log.cleanup(max_age_ms=HOUR) == 1

    def test_keeps_recent(self, event_log):
        event_log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="user-1"))
        assert event_log.cleanup() == 0
        assert len(event_log) == 1


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_scheduled_cleanup(self, clock):
        """The background task applies the retention period."""
        log = AuthEventLog(clock=clock, retention_ms=HOUR, cleanup_interval_ms=10)
        log.log(AuthEvent(type=AuthEventType.LOGIN_SUCCESS, user_id="user-1"))
        clock.advance(2 * HOUR)

        log.start()
        await asyncio.sleep(0.1)
        await log.stop()

        assert len(log) == 0
