"""
Authentication module data models.

These models define the credential record, the request bodies accepted by
the auth routes and the identities handed back to callers.
"""

import re
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

PASSWORD_MIN_LENGTH = 8
_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def normalize_email(email: str) -> str:
    """Canonical form used for storage, lookups and rate limit keys."""
    return email.strip().lower()


def check_password_strength(password: str) -> str:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not _PASSWORD_PATTERN.match(password):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter and one digit"
        )
    return password


class Credential(BaseModel):
    """
    Stored user record.

    The password hash is excluded from serialization and repr; it only
    ever leaves the store to be checked by verify_password.
    """

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Normalized email")
    name: Optional[str] = Field(None, description="Display name")
    password_hash: Optional[str] = Field(
        None,
        exclude=True,
        repr=False,
        description="bcrypt hash; None for external-provider accounts",
    )
    image: Optional[str] = Field(None, description="Avatar URL")
    email_verified: Optional[datetime] = Field(None, description="When the email was verified")
    created_at: datetime
    updated_at: datetime

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)


class NewCredential(BaseModel):
    """Fields needed to create a credential."""

    email: str
    name: Optional[str] = None
    password_hash: Optional[str] = Field(None, repr=False)
    image: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_email(value)


class SessionUser(BaseModel):
    """Minimal identity returned after a successful login."""

    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    email_verified: Optional[datetime] = None

    model_config = {"frozen": True}

    @classmethod
    def from_credential(cls, credential: Credential) -> "SessionUser":
        return cls(
            id=credential.id,
            email=credential.email,
            name=credential.name,
            image=credential.image,
            email_verified=credential.email_verified,
        )


class SessionToken(BaseModel):
    """Signed bearer token handed to the client after login."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class SessionClaims(BaseModel):
    """Decoded session token payload."""

    sub: str = Field(..., description="Subject (user ID)")
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    email_verified: Optional[int] = Field(None, description="Verification time (epoch seconds)")
    iat: int
    exp: int


class RegistrationResult(BaseModel):
    """Outcome of a successful registration."""

    user: SessionUser
    verification_token: str = Field(..., repr=False)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str
    confirm_password: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        return value

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str
    confirm_password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "ResetPasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str
    confirm_new_password: str = Field(..., min_length=1)

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)

    @model_validator(mode="after")
    def _check_new_password(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_new_password:
            raise ValueError("Passwords do not match")
        if self.new_password == self.current_password:
            raise ValueError("New password must differ from the current password")
        return self


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    message: str


class RegisterResponse(BaseModel):
    user: SessionUser
    message: str
    verification_token: Optional[str] = None


class LoginResponse(BaseModel):
    user: SessionUser
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class ForgotPasswordResponse(BaseModel):
    message: str
    reset_token: Optional[str] = None


class VerifyEmailResponse(BaseModel):
    message: str
    email: str


class AuthEventView(BaseModel):
    """Public view of one auth log entry."""

    type: str
    timestamp: datetime
    ip: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
