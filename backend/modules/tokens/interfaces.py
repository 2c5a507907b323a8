"""
Token module interfaces.

ITokenStore is the persistence boundary for verification and reset tokens.
Tokens are looked up by the token string, never by identifier.
"""

from typing import Optional, Protocol, runtime_checkable

from .models import TokenPurpose, VerificationToken


@runtime_checkable
class ITokenStore(Protocol):
    """Persistence for single-use tokens."""

    async def delete_all_for(self, identifier: str) -> None:
        """Delete every token filed under `identifier`."""
        ...

    async def create(self, token: VerificationToken) -> None:
        """Insert a token row."""
        ...

    async def replace(self, token: VerificationToken) -> None:
        """
        Atomically delete all tokens for `token.identifier` and insert `token`.

        Keeps at most one live token per identifier under concurrent requests.
        """
        ...

    async def find_by_token(self, token: str) -> Optional[VerificationToken]:
        """Look up a token row, expired or not."""
        ...

    async def delete_by_token(self, token: str) -> None:
        """Delete a token row if it exists."""
        ...


@runtime_checkable
class ITokenIssuer(Protocol):
    """Issues and redeems opaque single-use tokens."""

    async def issue(self, identifier: str, ttl_ms: int) -> str:
        """
        Create a token for `identifier`, invalidating any earlier one.

        Args:
            identifier: Namespace-qualified owner (email or "reset:" + email)
            ttl_ms: Lifetime in milliseconds

        Returns:
            The new token string
        """
        ...

    async def consume(
        self, token: str, purpose: Optional[TokenPurpose] = None
    ) -> Optional[str]:
        """
        Redeem a token once.

        Args:
            token: Token string from the user
            purpose: When given, only tokens in this namespace are accepted
                and the namespace prefix is stripped from the result

        Returns:
            The identifier (or email, with a purpose), or None when the
            token is unknown, expired, or belongs to another purpose
        """
        ...
