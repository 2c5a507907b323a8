"""
Verification and password reset token models.

Both token kinds share one store. The identifier a token is filed under
tells them apart: a plain email for email verification, "reset:" + email
for password reset.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from shared.clock import HOUR_MS, DAY_MS


class VerificationToken(BaseModel):
    """A stored single-use token."""

    identifier: str = Field(..., min_length=1, description="Namespace-qualified owner")
    token: str = Field(..., min_length=1, description="Opaque random token")
    expires: datetime = Field(..., description="Absolute expiry (UTC)")

    model_config = {"frozen": True}


class TokenPurpose(str, Enum):
    """What a token may be used for; each purpose owns an identifier namespace."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"

    @property
    def prefix(self) -> str:
        return _PREFIXES[self]

    @property
    def ttl_ms(self) -> int:
        return _TTLS[self]

    def identifier_for(self, email: str) -> str:
        """File `email` under this purpose's namespace."""
        return f"{self.prefix}{email}"

    def email_from(self, identifier: str) -> Optional[str]:
        """
        Recover the email from an identifier in this namespace.

        Returns None when the identifier belongs to another purpose.
        """
        if self is TokenPurpose.EMAIL_VERIFICATION:
            if any(identifier.startswith(p) for p in _PREFIXES.values() if p):
                return None
            return identifier
        if not identifier.startswith(self.prefix):
            return None
        return identifier[len(self.prefix):]


_PREFIXES = {
    TokenPurpose.EMAIL_VERIFICATION: "",
    TokenPurpose.PASSWORD_RESET: "reset:",
}

_TTLS = {
    TokenPurpose.EMAIL_VERIFICATION: DAY_MS,
    TokenPurpose.PASSWORD_RESET: HOUR_MS,
}
