"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    This model is populated from session token claims and made available
    to route handlers via dependency injection.
    """

    id: str = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User's email address")
    name: Optional[str] = Field(None, description="Display name")
    image: Optional[str] = Field(None, description="Avatar URL")
    email_verified: bool = Field(default=False, description="Whether email is verified")

    last_sign_in: Optional[datetime] = Field(None, description="Session issue time")

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",  # Ignore extra claims
    }
