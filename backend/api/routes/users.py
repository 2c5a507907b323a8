"""
User-related endpoints.

Provides the signed-in user's profile and recent account activity.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr

from shared.models import AuthenticatedUser
from modules.auth.interfaces import IAuthService
from modules.auth.models import AuthEventView

from ..dependencies import get_auth_service
from ..middleware.auth import get_current_user
from ..models import ERROR_RESPONSES

router = APIRouter(responses=ERROR_RESPONSES)


class UserProfileResponse(BaseModel):
    """User profile response model."""

    id: str
    email: EmailStr
    name: Optional[str] = None
    image: Optional[str] = None
    email_verified: bool


class AuthEventListResponse(BaseModel):
    events: list[AuthEventView]


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    user: AuthenticatedUser = Depends(get_current_user),
) -> UserProfileResponse:
    """
    Get the current user's profile.

    Requires authentication.
    """
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        image=user.image,
        email_verified=user.email_verified,
    )


@router.get("/me/auth-events", response_model=AuthEventListResponse)
async def get_my_auth_events(
    limit: int = Query(default=50, ge=1, le=200, description="Maximum events to return"),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAuthService = Depends(get_auth_service),
) -> AuthEventListResponse:
    """Recent sign-ins, failures and password changes for the current user, newest first."""
    entries = service.recent_activity(user.id, limit)
    return AuthEventListResponse(
        events=[
            AuthEventView(
                type=entry.type.value,
                timestamp=entry.timestamp,
                ip=entry.ip,
                metadata=entry.metadata,
            )
            for entry in entries
        ]
    )
