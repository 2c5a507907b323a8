"""
Verification and password reset tokens.

Public API:
- ITokenStore / ITokenIssuer: Interfaces
- TokenIssuer: Issues and redeems single-use tokens
- InMemoryTokenStore / SupabaseTokenRepository: Stores
- TokenPurpose, VerificationToken: Models
"""

from .interfaces import ITokenStore, ITokenIssuer
from .models import TokenPurpose, VerificationToken
from .repository import InMemoryTokenStore, SupabaseTokenRepository
from .service import TokenIssuer, generate_token

__all__ = [
    # Interfaces
    "ITokenStore",
    "ITokenIssuer",
    # Implementations
    "TokenIssuer",
    "InMemoryTokenStore",
    "SupabaseTokenRepository",
    # Models
    "TokenPurpose",
    "VerificationToken",
    # Helpers
    "generate_token",
]
