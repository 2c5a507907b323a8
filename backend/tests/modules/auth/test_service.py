"""Tests for the auth service orchestration."""

import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from modules.auth.exceptions import (
    INVALID_CREDENTIALS_MESSAGE,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingCredentialsError,
    PasswordChangeError,
    RateLimitExceededError,
    SuspiciousActivityError,
)
from modules.auth.interfaces import IAuthService
from modules.auth.models import NewCredential, RegisterRequest
from modules.auth.passwords import PasswordHasher
from modules.auth.service import AuthService
from modules.auth_events.models import AuthEvent, AuthEventType
from modules.ratelimit.models import LOGIN_POLICY
from modules.tokens.models import TokenPurpose
from shared.result import Err, Ok

PASSWORD = "Password123"
NEW_PASSWORD = "NewPassword456"
MINUTE = 60 * 1000
HOUR = 60 * MINUTE


def register_request(email: str = "test@example.com", name: str = "Test User") -> RegisterRequest:
    return RegisterRequest(name=name, email=email, password=PASSWORD, confirm_password=PASSWORD)


@pytest_asyncio.fixture
async def user(auth_service):
    """A registered account."""
    result = await auth_service.register(register_request(), ip="1.1.1.1")
    assert isinstance(result, Ok)
    return result.value.user


def event_types(event_log) -> list[AuthEventType]:
    """Logged event kinds, oldest first."""
    return [e.type for e in event_log._entries]


class SlowHasher(PasswordHasher):
    """Hasher whose every bcrypt call takes a noticeable amount of time."""

    DELAY = 0.2

    def hash_sync(self, password: str) -> str:
        time.sleep(self.DELAY)
        return super().hash_sync(password)

    def verify_sync(self, password: str, password_hash: str) -> bool:
        time.sleep(self.DELAY)
        return super().verify_sync(password, password_hash)


async def max_loop_stall(coro) -> float:
    """Run `coro` next to a 5 ms ticker and return the longest gap between ticks."""
    loop = asyncio.get_running_loop()
    gaps: list[float] = []
    done = asyncio.Event()

    async def ticker():
        last = loop.time()
        while not done.is_set():
            await asyncio.sleep(0.005)
            now = loop.time()
            gaps.append(now - last)
            last = now

    task = asyncio.create_task(ticker())
    try:
        await coro
    finally:
        done.set()
        await task
    return max(gaps)


class TestInterface:
    def test_implements_interface(self, auth_service):
        assert isinstance(auth_service, IAuthService)


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_success(self, auth_service, user, event_log, limiter):
        """Correct credentials return the user and clear the login counter."""
        await auth_service.authenticate("test@example.com", "wrong", ip="1.1.1.1")

        result = await auth_service.authenticate("test@example.com", PASSWORD, ip="1.1.1.1")

        assert isinstance(result, Ok)
        assert result.value.id == user.id
        assert result.value.email == "test@example.com"
        assert limiter.count("auth:test@example.com") == 0
        assert event_types(event_log)[-1] == AuthEventType.LOGIN_SUCCESS

    @pytest.mark.asyncio
    async def test_normalizes_email(self, auth_service, user):
        result = await auth_service.authenticate("  TEST@Example.com ", PASSWORD)
        assert isinstance(result, Ok)

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth_service, user, event_log):
        result = await auth_service.authenticate("test@example.com", "Wrong12345", ip="1.1.1.1")

        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidCredentialsError)
        entry = event_log.events_by_type(AuthEventType.LOGIN_FAILED)[0]
        assert entry.metadata == {"reason": "INVALID_PASSWORD"}
        assert entry.user_id == user.id

    @pytest.mark.asyncio
    async def test_unknown_email_matches_wrong_password(self, auth_service, user, event_log):
        """Unknown email and wrong password are indistinguishable to the caller."""
        unknown = await auth_service.authenticate("nobody@example.com", PASSWORD)
        wrong = await auth_service.authenticate("test@example.com", "Wrong12345")

        assert unknown.error.to_dict() == wrong.error.to_dict()
        assert unknown.error.message == INVALID_CREDENTIALS_MESSAGE
        entry = event_log.events_by_type(AuthEventType.LOGIN_FAILED)[-1]
        assert entry.email == "nobody@example.com"
        assert entry.metadata == {"reason": "USER_NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_unknown_email_still_hashes(self, auth_service, hasher):
        """A bcrypt check runs even when there is no account."""
        with patch.object(hasher, "verify", wraps=hasher.verify) as verify:
            await auth_service.authenticate("nobody@example.com", PASSWORD)
        verify.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_email_does_not_block_event_loop(
        self, credential_store, token_issuer, limiter, event_log, clock
    ):
        """The first unknown-email login hashes its timing decoy in a worker thread."""
        service = AuthService(
            credentials=credential_store,
            tokens=token_issuer,
            limiter=limiter,
            events=event_log,
            hasher=SlowHasher(rounds=4),
            clock=clock,
        )

        stall = await max_loop_stall(service.authenticate("nobody@example.com", PASSWORD))

        assert stall < SlowHasher.DELAY / 2

    @pytest.mark.asyncio
    async def test_account_without_password(self, auth_service, credential_store):
        """External-provider accounts cannot sign in with a password."""
        await credential_store.create(NewCredential(email="oauth@example.com", name="OAuth"))

        result = await auth_service.authenticate("oauth@example.com", PASSWORD)

        assert isinstance(result.error, InvalidCredentialsError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [("", PASSWORD), ("test@example.com", "")])
    async def test_missing_credentials(self, auth_service, email, password):
        result = await auth_service.authenticate(email, password)
        assert isinstance(result.error, MissingCredentialsError)

    @pytest.mark.asyncio
    async def test_lockout_after_five_attempts(self, auth_service, user, event_log, clock):
        """The sixth attempt inside 15 minutes is rejected, even with the right password."""
        for _ in range(5):
            result = await auth_service.authenticate("test@example.com", "Wrong12345")
            assert isinstance(result.error, InvalidCredentialsError)

        clock.advance(MINUTE)
        result = await auth_service.authenticate("test@example.com", PASSWORD)

        assert isinstance(result.error, RateLimitExceededError)
        assert result.error.retry_after_ms == 14 * MINUTE
        assert "14 minutes" in result.error.message
        entry = event_log.events_by_type(AuthEventType.LOGIN_RATE_LIMITED)[0]
        assert entry.metadata == {"remaining_ms": 14 * MINUTE}

    @pytest.mark.asyncio
    async def test_lockout_applies_to_unknown_email(self, auth_service):
        """Locked-out unknown emails look the same as locked-out real ones."""
        for _ in range(5):
            await auth_service.authenticate("nobody@example.com", PASSWORD)

        result = await auth_service.authenticate("nobody@example.com", PASSWORD)

        assert isinstance(result.error, RateLimitExceededError)

    @pytest.mark.asyncio
    async def test_lockout_expires(self, auth_service, user, clock):
        for _ in range(6):
            await auth_service.authenticate("test@example.com", "Wrong12345")

        clock.advance(15 * MINUTE + 1)
        result = await auth_service.authenticate("test@example.com", PASSWORD)

        assert isinstance(result, Ok)


class TestRegister:
    @pytest.mark.asyncio
    async def test_creates_account(self, auth_service, credential_store, hasher, event_log):
        result = await auth_service.register(register_request(email="New@Example.com"), ip="1.1.1.1")

        assert isinstance(result, Ok)
        credential = await credential_store.find_by_email("new@example.com")
        assert credential.name == "Test User"
        assert credential.email_verified is None
        assert hasher.verify_sync(PASSWORD, credential.password_hash)
        assert result.value.user.id == credential.id
        assert event_types(event_log) == [
            AuthEventType.ACCOUNT_CREATED,
            AuthEventType.EMAIL_VERIFICATION_SENT,
        ]

    @pytest.mark.asyncio
    async def test_issues_verification_token(self, auth_service, token_issuer):
        result = await auth_service.register(register_request())

        token = result.value.verification_token
        assert await token_issuer.consume(token, TokenPurpose.EMAIL_VERIFICATION) == "test@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, auth_service, user, event_log):
        result = await auth_service.register(register_request(email="TEST@example.com"))

        assert isinstance(result.error, EmailAlreadyExistsError)
        entry = event_log.events_by_type(AuthEventType.ACCOUNT_CREATED)[0]
        assert entry.metadata == {"status": "DUPLICATE_EMAIL"}

    @pytest.mark.asyncio
    async def test_lost_race_maps_to_conflict(self, auth_service, credential_store):
        """A concurrent insert of the same email still yields a conflict."""
        with patch.object(
            credential_store, "create", AsyncMock(side_effect=EmailAlreadyExistsError())
        ):
            result = await auth_service.register(register_request())

        assert isinstance(result.error, EmailAlreadyExistsError)

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, auth_service, credential_store, event_log):
        with patch.object(credential_store, "create", AsyncMock(side_effect=RuntimeError("db down"))):
            with pytest.raises(RuntimeError):
                await auth_service.register(register_request())

        entry = event_log.events_by_type(AuthEventType.ACCOUNT_CREATED)[0]
        assert entry.metadata["status"] == "ERROR"

    @pytest.mark.asyncio
    async def test_rate_limited_per_ip(self, auth_service):
        for i in range(5):
            result = await auth_service.register(register_request(email=f"u{i}@example.com"), ip="9.9.9.9")
            assert isinstance(result, Ok)

        result = await auth_service.register(register_request(email="u6@example.com"), ip="9.9.9.9")
        other_ip = await auth_service.register(register_request(email="u7@example.com"), ip="8.8.8.8")

        assert isinstance(result.error, RateLimitExceededError)
        assert isinstance(other_ip, Ok)

    @pytest.mark.asyncio
    async def test_blocked_when_suspicious(self, auth_service, event_log):
        for _ in range(5):
            event_log.log(AuthEvent(type=AuthEventType.PASSWORD_RESET_REQUESTED, email="test@example.com"))

        result = await auth_service.register(register_request())

        assert isinstance(result.error, SuspiciousActivityError)
        entry = event_log.events_by_type(AuthEventType.SUSPICIOUS_ACTIVITY)[0]
        assert entry.metadata["action"] == "REGISTRATION_BLOCKED"


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_unknown_email_gives_no_token(self, auth_service, event_log):
        result = await auth_service.request_password_reset("nobody@example.com", ip="1.1.1.1")

        assert result == Ok(None)
        entry = event_log.events_by_type(AuthEventType.PASSWORD_RESET_REQUESTED)[0]
        assert entry.metadata["token_generated"] is False

    @pytest.mark.asyncio
    async def test_known_email_gives_token(self, auth_service, user, event_log):
        result = await auth_service.request_password_reset("test@example.com", ip="1.1.1.1")

        assert isinstance(result.value, str)
        entries = event_log.events_by_type(AuthEventType.PASSWORD_RESET_REQUESTED)
        assert len(entries) == 1
        assert entries[0].metadata == {"token_generated": True}

    @pytest.mark.asyncio
    async def test_new_request_invalidates_old_token(self, auth_service, user):
        first = (await auth_service.request_password_reset("test@example.com")).value
        second = (await auth_service.request_password_reset("test@example.com")).value

        stale = await auth_service.reset_password(first, NEW_PASSWORD)
        fresh = await auth_service.reset_password(second, NEW_PASSWORD)

        assert isinstance(stale.error, InvalidTokenError)
        assert isinstance(fresh, Ok)

    @pytest.mark.asyncio
    async def test_request_rate_limited(self, auth_service):
        for _ in range(3):
            await auth_service.request_password_reset("a@example.com", ip="1.1.1.1")

        result = await auth_service.request_password_reset("a@example.com", ip="1.1.1.1")

        assert isinstance(result.error, RateLimitExceededError)

    @pytest.mark.asyncio
    async def test_reset_sets_password(self, auth_service, user, limiter, event_log):
        """A successful reset changes the password and clears the login lockout."""
        for _ in range(6):
            await auth_service.authenticate("test@example.com", "Wrong12345")
        token = (await auth_service.request_password_reset("test@example.com")).value

        result = await auth_service.reset_password(token, NEW_PASSWORD, ip="1.1.1.1")

        assert result == Ok("test@example.com")
        assert limiter.count(LOGIN_POLICY.key("test@example.com")) == 0
        assert isinstance(await auth_service.authenticate("test@example.com", NEW_PASSWORD), Ok)
        assert isinstance(
            (await auth_service.authenticate("test@example.com", PASSWORD)).error,
            InvalidCredentialsError,
        )
        assert event_log.events_by_type(AuthEventType.PASSWORD_RESET_SUCCESS)

    @pytest.mark.asyncio
    async def test_reset_token_single_use(self, auth_service, user):
        token = (await auth_service.request_password_reset("test@example.com")).value
        await auth_service.reset_password(token, NEW_PASSWORD)

        result = await auth_service.reset_password(token, "Another789x")

        assert isinstance(result.error, InvalidTokenError)

    @pytest.mark.asyncio
    async def test_expired_reset_token(self, auth_service, user, clock, event_log):
        token = (await auth_service.request_password_reset("test@example.com")).value
        clock.advance(HOUR + 1)

        result = await auth_service.reset_password(token, NEW_PASSWORD)

        assert isinstance(result.error, InvalidTokenError)
        assert result.error.message == "Invalid or expired password reset link"
        assert event_log.events_by_type(AuthEventType.PASSWORD_RESET_FAILED)

    @pytest.mark.asyncio
    async def test_verification_token_cannot_reset(self, auth_service):
        registration = (await auth_service.register(register_request())).value

        result = await auth_service.reset_password(registration.verification_token, NEW_PASSWORD)

        assert isinstance(result.error, InvalidTokenError)


class TestChangePassword:
    @pytest.mark.asyncio
    async def test_success(self, auth_service, user, event_log):
        result = await auth_service.change_password(user.id, PASSWORD, NEW_PASSWORD)

        assert result == Ok(None)
        assert isinstance(await auth_service.authenticate("test@example.com", NEW_PASSWORD), Ok)
        assert event_log.events_by_type(AuthEventType.PASSWORD_CHANGED)[0].user_id == user.id

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, auth_service, user, event_log):
        result = await auth_service.change_password(user.id, "Wrong12345", NEW_PASSWORD)

        assert isinstance(result.error, PasswordChangeError)
        assert result.error.message == "Current password is incorrect"
        entry = event_log.events_by_type(AuthEventType.PASSWORD_CHANGE_FAILED)[0]
        assert entry.metadata == {"reason": "INVALID_CURRENT_PASSWORD"}

    @pytest.mark.asyncio
    async def test_same_password(self, auth_service, user):
        result = await auth_service.change_password(user.id, PASSWORD, PASSWORD)
        assert result.error.details == {"reason": "SAME_PASSWORD"}

    @pytest.mark.asyncio
    async def test_unknown_user(self, auth_service):
        result = await auth_service.change_password("missing", PASSWORD, NEW_PASSWORD)
        assert result.error.details == {"reason": "USER_NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_rate_limited_per_user(self, auth_service, user):
        for _ in range(5):
            await auth_service.change_password(user.id, "Wrong12345", NEW_PASSWORD)

        result = await auth_service.change_password(user.id, PASSWORD, NEW_PASSWORD)

        assert isinstance(result.error, RateLimitExceededError)


class TestVerifyEmail:
    @pytest.mark.asyncio
    async def test_marks_verified(self, auth_service, credential_store, clock, event_log):
        registration = (await auth_service.register(register_request())).value

        result = await auth_service.verify_email(registration.verification_token, ip="1.1.1.1")

        assert result == Ok("test@example.com")
        credential = await credential_store.find_by_email("test@example.com")
        assert credential.email_verified.timestamp() * 1000 == clock()
        assert event_log.events_by_type(AuthEventType.EMAIL_VERIFIED)

    @pytest.mark.asyncio
    async def test_invalid_token(self, auth_service):
        result = await auth_service.verify_email("bogus")
        assert isinstance(result.error, InvalidTokenError)
        assert result.error.message == "Invalid or expired verification link"

    @pytest.mark.asyncio
    async def test_expired_after_24_hours(self, auth_service, clock):
        registration = (await auth_service.register(register_request())).value
        clock.advance(24 * HOUR + 1)

        result = await auth_service.verify_email(registration.verification_token)

        assert isinstance(result.error, InvalidTokenError)

    @pytest.mark.asyncio
    async def test_reset_token_cannot_verify(self, auth_service, user):
        token = (await auth_service.request_password_reset("test@example.com")).value
        result = await auth_service.verify_email(token)
        assert isinstance(result.error, InvalidTokenError)

    @pytest.mark.asyncio
    async def test_reissue_invalidates_previous(self, auth_service):
        registration = (await auth_service.register(register_request())).value
        fresh = await auth_service.issue_verification("test@example.com")

        stale = await auth_service.verify_email(registration.verification_token)
        ok = await auth_service.verify_email(fresh)

        assert isinstance(stale.error, InvalidTokenError)
        assert isinstance(ok, Ok)

    @pytest.mark.asyncio
    async def test_rate_limited(self, auth_service):
        for _ in range(10):
            await auth_service.verify_email("bogus", ip="1.1.1.1")

        result = await auth_service.verify_email("bogus", ip="1.1.1.1")

        assert isinstance(result.error, RateLimitExceededError)


class TestActivity:
    @pytest.mark.asyncio
    async def test_logout_logged(self, auth_service, user, event_log):
        await auth_service.logout(user.id, user.email, ip="1.1.1.1")
        assert event_log.events_by_type(AuthEventType.LOGOUT)[0].user_id == user.id

    @pytest.mark.asyncio
    async def test_recent_activity(self, auth_service, user):
        await auth_service.authenticate("test@example.com", PASSWORD)
        await auth_service.logout(user.id, user.email)

        events = auth_service.recent_activity(user.id)

        assert [e.type for e in events[:2]] == [AuthEventType.LOGOUT, AuthEventType.LOGIN_SUCCESS]
