"""
Authentication module interfaces.

Other modules should depend on these protocols, not the concrete
implementations. ICredentialStore is the database boundary; IAuthService
is what the HTTP layer calls.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from shared.result import Result
from modules.auth_events import AuthLogEntry
from .models import (
    Credential,
    NewCredential,
    RegisterRequest,
    RegistrationResult,
    SessionUser,
)


@runtime_checkable
class ICredentialStore(Protocol):
    """Persistent user records. Emails are stored normalized."""

    async def find_by_email(self, email: str) -> Optional[Credential]:
        """Find a credential by normalized email."""
        ...

    async def find_by_id(self, user_id: str) -> Optional[Credential]:
        """Find a credential by user ID."""
        ...

    async def create(self, fields: NewCredential) -> Credential:
        """
        Insert a new credential.

        Raises:
            EmailAlreadyExistsError: If the email is taken
        """
        ...

    async def update_password(self, user_id: str, password_hash: str) -> None:
        """Overwrite a user's password hash."""
        ...

    async def mark_verified(self, email: str, when: datetime) -> None:
        """Set the email-verified timestamp for the account with `email`."""
        ...


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    Every method returns a Result. Expected failures (bad password, rate
    limited, bad token) come back as Err; unexpected ones raise.
    """

    async def register(
        self, request: RegisterRequest, ip: Optional[str] = None
    ) -> Result[RegistrationResult]:
        """Create an account and issue its email verification token."""
        ...

    async def authenticate(
        self, email: str, password: str, ip: Optional[str] = None
    ) -> Result[SessionUser]:
        """Run the login state machine for an email/password pair."""
        ...

    async def logout(self, user_id: str, email: str, ip: Optional[str] = None) -> None:
        """Record the end of a session."""
        ...

    async def request_password_reset(
        self, email: str, ip: Optional[str] = None
    ) -> Result[Optional[str]]:
        """Issue a reset token if the account exists; Ok(None) otherwise."""
        ...

    async def reset_password(
        self, token: str, new_password: str, ip: Optional[str] = None
    ) -> Result[str]:
        """Redeem a reset token and set a new password; Ok(email)."""
        ...

    async def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> Result[None]:
        """Change the password of an authenticated user."""
        ...

    async def issue_verification(self, email: str) -> str:
        """Issue a fresh email verification token for `email`."""
        ...

    async def verify_email(self, token: str, ip: Optional[str] = None) -> Result[str]:
        """Redeem a verification token; Ok(email)."""
        ...

    def recent_activity(self, user_id: str, limit: int = 50) -> list[AuthLogEntry]:
        """The user's most recent auth events, newest first."""
        ...
