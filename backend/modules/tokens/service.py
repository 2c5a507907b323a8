"""
Token issuer for email verification and password reset.
"""

import logging
import secrets
import string
from datetime import timedelta
from typing import Optional

from shared.clock import Clock, system_clock, to_datetime

from .interfaces import ITokenIssuer, ITokenStore
from .models import TokenPurpose, VerificationToken

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits
DEFAULT_TOKEN_LENGTH = 64


def generate_token(length: int = DEFAULT_TOKEN_LENGTH) -> str:
    """Random alphanumeric token from the OS CSPRNG."""
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


class TokenIssuer(ITokenIssuer):
    """
    Issues single-use tokens with an absolute expiry.

    At most one live token exists per identifier: issuing a new one replaces
    the old. Expired tokens are deleted the next time someone presents them.
    """

    def __init__(
        self,
        store: ITokenStore,
        clock: Clock = system_clock,
        token_length: int = DEFAULT_TOKEN_LENGTH,
    ):
        self._store = store
        self._clock = clock
        self._token_length = token_length

    async def issue(self, identifier: str, ttl_ms: int) -> str:
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        token = generate_token(self._token_length)
        expires = to_datetime(self._clock()) + timedelta(milliseconds=ttl_ms)
        await self._store.replace(
            VerificationToken(identifier=identifier, token=token, expires=expires)
        )
        return token

    async def issue_for(self, purpose: TokenPurpose, email: str) -> str:
        """Issue a token for `email` in `purpose`'s namespace with its default TTL."""
        return await self.issue(purpose.identifier_for(email), purpose.ttl_ms)

    async def consume(
        self, token: str, purpose: Optional[TokenPurpose] = None
    ) -> Optional[str]:
        if not token:
            return None

        row = await self._store.find_by_token(token)
        if row is None:
            return None

        if row.expires < to_datetime(self._clock()):
            await self._store.delete_by_token(token)
            return None

        if purpose is not None and purpose.email_from(row.identifier) is None:
            logger.debug("Token presented for %s belongs to another purpose", purpose.value)
            return None

        await self._store.delete_by_token(token)

        if purpose is not None:
            return purpose.email_from(row.identifier)
        return row.identifier
