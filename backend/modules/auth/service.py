"""
Authentication service implementation.

Orchestrates the rate limiter, credential store, password hasher, token
issuer and auth event log for login, registration, password reset,
password change and email verification.
"""

import logging
from typing import Optional

from shared.clock import Clock, system_clock, to_datetime
from shared.result import Err, Ok, Result
from modules.auth_events import AuthEvent, AuthEventType, AuthLogEntry, IAuthEventLog
from modules.ratelimit import (
    IRateLimiter,
    RateLimitPolicy,
    LOGIN_POLICY,
    REGISTER_POLICY,
    FORGOT_PASSWORD_POLICY,
    RESET_PASSWORD_POLICY,
    VERIFY_EMAIL_POLICY,
    CHANGE_PASSWORD_POLICY,
)
from modules.tokens import TokenIssuer, TokenPurpose

from .exceptions import (
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingCredentialsError,
    PasswordChangeError,
    RateLimitExceededError,
    SuspiciousActivityError,
)
from .interfaces import IAuthService, ICredentialStore
from .models import (
    NewCredential,
    RegisterRequest,
    RegistrationResult,
    SessionUser,
    normalize_email,
)
from .passwords import PasswordHasher

logger = logging.getLogger(__name__)

UNKNOWN_IP = "unknown"


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    All collaborators are injected; the service holds no state of its own.
    """

    def __init__(
        self,
        credentials: ICredentialStore,
        tokens: TokenIssuer,
        limiter: IRateLimiter,
        events: IAuthEventLog,
        hasher: Optional[PasswordHasher] = None,
        clock: Clock = system_clock,
    ):
        self._credentials = credentials
        self._tokens = tokens
        self._limiter = limiter
        self._events = events
        self._hasher = hasher or PasswordHasher()
        self._clock = clock
        self._dummy_hash: Optional[str] = None

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    async def authenticate(
        self, email: str, password: str, ip: Optional[str] = None
    ) -> Result[SessionUser]:
        """
        Run the login state machine.

        RATE_CHECK -> CREDENTIAL_LOOKUP -> PASSWORD_VERIFY -> SUCCESS | REJECTED.
        The rate limit is consulted before the store so a locked-out email
        behaves the same whether or not it has an account.
        """
        if not email or not password:
            return Err(MissingCredentialsError())

        email = normalize_email(email)

        limit = self._limiter.check_policy(LOGIN_POLICY, email)
        if not limit.allowed:
            self._log(
                AuthEventType.LOGIN_RATE_LIMITED,
                email=email,
                ip=ip,
                metadata={"remaining_ms": limit.retry_after_ms},
            )
            return Err(RateLimitExceededError("failed login attempts", limit.retry_after_ms or 0))

        credential = await self._credentials.find_by_email(email)
        if credential is None or not credential.has_password:
            # Spend the same bcrypt time as a real check
            await self._hasher.verify(password, await self._get_dummy_hash())
            self._log(
                AuthEventType.LOGIN_FAILED,
                email=email,
                ip=ip,
                metadata={"reason": "USER_NOT_FOUND"},
            )
            return Err(InvalidCredentialsError())

        if not await self._hasher.verify(password, credential.password_hash):
            self._log(
                AuthEventType.LOGIN_FAILED,
                email=email,
                user_id=credential.id,
                ip=ip,
                metadata={"reason": "INVALID_PASSWORD"},
            )
            return Err(InvalidCredentialsError())

        self._limiter.reset(LOGIN_POLICY.key(email))
        self._log(AuthEventType.LOGIN_SUCCESS, email=email, user_id=credential.id, ip=ip)

        return Ok(SessionUser.from_credential(credential))

    async def logout(self, user_id: str, email: str, ip: Optional[str] = None) -> None:
        self._log(AuthEventType.LOGOUT, email=email, user_id=user_id, ip=ip)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    async def register(
        self, request: RegisterRequest, ip: Optional[str] = None
    ) -> Result[RegistrationResult]:
        limited = self._check_limit(REGISTER_POLICY, ip or UNKNOWN_IP, "registration attempts")
        if limited:
            return Err(limited)

        email = normalize_email(request.email)

        report = self._events.detect_suspicious(email)
        if report.suspicious:
            self._log(
                AuthEventType.SUSPICIOUS_ACTIVITY,
                email=email,
                ip=ip,
                metadata={"reason": report.reason, "action": "REGISTRATION_BLOCKED"},
            )
            return Err(SuspiciousActivityError())

        if await self._credentials.find_by_email(email) is not None:
            self._log(
                AuthEventType.ACCOUNT_CREATED,
                email=email,
                ip=ip,
                metadata={"status": "DUPLICATE_EMAIL"},
            )
            return Err(EmailAlreadyExistsError())

        try:
            password_hash = await self._hasher.hash(request.password)
            credential = await self._credentials.create(
                NewCredential(email=email, name=request.name, password_hash=password_hash)
            )
        except EmailAlreadyExistsError as e:
            # Lost a race with a concurrent registration for the same email
            return Err(e)
        except Exception as e:
            self._log(
                AuthEventType.ACCOUNT_CREATED,
                email=email,
                ip=ip,
                metadata={"status": "ERROR", "error": type(e).__name__},
            )
            raise

        self._log(AuthEventType.ACCOUNT_CREATED, email=email, user_id=credential.id, ip=ip)
        token = await self.issue_verification(email, user_id=credential.id)

        return Ok(
            RegistrationResult(
                user=SessionUser.from_credential(credential),
                verification_token=token,
            )
        )

    # -------------------------------------------------------------------------
    # Password reset and change
    # -------------------------------------------------------------------------

    async def request_password_reset(
        self, email: str, ip: Optional[str] = None
    ) -> Result[Optional[str]]:
        """
        Issue a reset token when the account exists.

        Returns Ok(None) for unknown emails so the caller can answer both
        cases identically.
        """
        limited = self._check_limit(
            FORGOT_PASSWORD_POLICY, ip or UNKNOWN_IP, "password reset requests"
        )
        if limited:
            return Err(limited)

        email = normalize_email(email)
        credential = await self._credentials.find_by_email(email)

        if credential is None:
            self._log(
                AuthEventType.PASSWORD_RESET_REQUESTED,
                email=email,
                ip=ip,
                metadata={"token_generated": False, "reason": "USER_NOT_FOUND"},
            )
            return Ok(None)

        token = await self._tokens.issue_for(TokenPurpose.PASSWORD_RESET, email)
        self._log(
            AuthEventType.PASSWORD_RESET_REQUESTED,
            email=email,
            user_id=credential.id,
            ip=ip,
            metadata={"token_generated": True},
        )
        return Ok(token)

    async def reset_password(
        self, token: str, new_password: str, ip: Optional[str] = None
    ) -> Result[str]:
        limited = self._check_limit(
            RESET_PASSWORD_POLICY, ip or UNKNOWN_IP, "password reset attempts"
        )
        if limited:
            return Err(limited)

        email = await self._tokens.consume(token, TokenPurpose.PASSWORD_RESET)
        credential = await self._credentials.find_by_email(email) if email else None

        if credential is None:
            self._log(
                AuthEventType.PASSWORD_RESET_FAILED,
                email=email,
                ip=ip,
                metadata={"reason": "INVALID_OR_EXPIRED_TOKEN"},
            )
            return Err(InvalidTokenError("Invalid or expired password reset link"))

        password_hash = await self._hasher.hash(new_password)
        await self._credentials.update_password(credential.id, password_hash)

        # A fresh password forgives earlier failed logins
        self._limiter.reset(LOGIN_POLICY.key(credential.email))

        self._log(
            AuthEventType.PASSWORD_RESET_SUCCESS,
            email=credential.email,
            user_id=credential.id,
            ip=ip,
        )
        return Ok(credential.email)

    async def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> Result[None]:
        limited = self._check_limit(CHANGE_PASSWORD_POLICY, user_id, "password change attempts")
        if limited:
            return Err(limited)

        credential = await self._credentials.find_by_id(user_id)
        if credential is None or not credential.has_password:
            return Err(PasswordChangeError("User not found", reason="USER_NOT_FOUND"))

        if current_password == new_password:
            return Err(
                PasswordChangeError(
                    "New password must differ from the current password",
                    reason="SAME_PASSWORD",
                )
            )

        if not await self._hasher.verify(current_password, credential.password_hash):
            self._log(
                AuthEventType.PASSWORD_CHANGE_FAILED,
                email=credential.email,
                user_id=credential.id,
                metadata={"reason": "INVALID_CURRENT_PASSWORD"},
            )
            return Err(
                PasswordChangeError(
                    "Current password is incorrect",
                    reason="INVALID_CURRENT_PASSWORD",
                )
            )

        password_hash = await self._hasher.hash(new_password)
        await self._credentials.update_password(credential.id, password_hash)
        self._limiter.reset(CHANGE_PASSWORD_POLICY.key(user_id))

        self._log(AuthEventType.PASSWORD_CHANGED, email=credential.email, user_id=credential.id)
        return Ok(None)

    # -------------------------------------------------------------------------
    # Email verification
    # -------------------------------------------------------------------------

    async def issue_verification(self, email: str, user_id: Optional[str] = None) -> str:
        email = normalize_email(email)
        token = await self._tokens.issue_for(TokenPurpose.EMAIL_VERIFICATION, email)
        self._log(AuthEventType.EMAIL_VERIFICATION_SENT, email=email, user_id=user_id)
        return token

    async def verify_email(self, token: str, ip: Optional[str] = None) -> Result[str]:
        limited = self._check_limit(VERIFY_EMAIL_POLICY, ip or UNKNOWN_IP, "verification attempts")
        if limited:
            return Err(limited)

        email = await self._tokens.consume(token, TokenPurpose.EMAIL_VERIFICATION)
        if email is None:
            return Err(InvalidTokenError("Invalid or expired verification link"))

        await self._credentials.mark_verified(email, to_datetime(self._clock()))
        self._log(AuthEventType.EMAIL_VERIFIED, email=email, ip=ip)
        return Ok(email)

    # -------------------------------------------------------------------------
    # Activity
    # -------------------------------------------------------------------------

    def recent_activity(self, user_id: str, limit: int = 50) -> list[AuthLogEntry]:
        """The user's most recent auth events, newest first."""
        return self._events.events_for_user(user_id, limit)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_limit(
        self, policy: RateLimitPolicy, subject: str, action: str
    ) -> Optional[RateLimitExceededError]:
        result = self._limiter.check_policy(policy, subject)
        if result.allowed:
            return None
        logger.info("Rate limit hit for %s", policy.key(subject))
        return RateLimitExceededError(action, result.retry_after_ms or 0)

    def _log(self, event_type: AuthEventType, **fields) -> None:
        self._events.log(AuthEvent(type=event_type, **fields))

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await self._hasher.hash("progressor-timing-equalizer")
        return self._dummy_hash
