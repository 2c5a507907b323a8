"""
Session tokens.

After a successful login the user receives an HS256-signed JWT carrying
the minimal identity. Protected routes decode it on every request; there is
no server-side session table.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from shared.clock import Clock, system_clock, to_datetime
from shared.models import AuthenticatedUser

from .exceptions import (
    ExpiredSessionError,
    InvalidSessionError,
    MissingSessionError,
    SessionNotConfiguredError,
)
from .models import SessionClaims, SessionToken, SessionUser

ALGORITHM = "HS256"
DEFAULT_SESSION_MAX_AGE = 30 * 24 * 60 * 60  # 30 days, in seconds


class SessionManager:
    """Issues and validates signed session tokens."""

    def __init__(
        self,
        secret: str,
        max_age: int = DEFAULT_SESSION_MAX_AGE,
        clock: Clock = system_clock,
    ):
        self._secret = secret
        self._max_age = max_age
        self._clock = clock

    def issue(self, user: SessionUser) -> SessionToken:
        """
        Sign a session token for `user`.

        Raises:
            SessionNotConfiguredError: If no signing secret is configured
        """
        if not self._secret:
            raise SessionNotConfiguredError()

        issued_at = to_datetime(self._clock())
        expires_at = issued_at + timedelta(seconds=self._max_age)
        claims = SessionClaims(
            sub=user.id,
            email=user.email,
            name=user.name,
            picture=user.image,
            email_verified=int(user.email_verified.timestamp()) if user.email_verified else None,
            iat=int(issued_at.timestamp()),
            exp=int(expires_at.timestamp()),
        )
        token = jwt.encode(claims.model_dump(), self._secret, algorithm=ALGORITHM)
        return SessionToken(access_token=token, expires_at=expires_at)

    def decode(self, token: Optional[str]) -> SessionClaims:
        """
        Validate a session token and return its claims.

        Raises:
            MissingSessionError: If no token was provided
            ExpiredSessionError: If the token has expired
            InvalidSessionError: If the token is malformed or badly signed
        """
        if not token:
            raise MissingSessionError()
        if not self._secret:
            raise SessionNotConfiguredError()

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                # Expiry is checked below against the injected clock
                options={"require": ["sub", "exp", "iat"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidSessionError(f"Invalid session token: {e}")

        if payload["exp"] * 1000 <= self._clock():
            raise ExpiredSessionError()

        return SessionClaims(**payload)

    def authenticate(self, token: Optional[str]) -> AuthenticatedUser:
        """Decode a token into the user model route handlers receive."""
        claims = self.decode(token)
        return AuthenticatedUser(
            id=claims.sub,
            email=claims.email,
            name=claims.name,
            image=claims.picture,
            email_verified=claims.email_verified is not None,
            last_sign_in=datetime.fromtimestamp(claims.iat, tz=timezone.utc),
        )
