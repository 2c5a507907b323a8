"""
Session authentication dependencies.

Validates the bearer session token issued at login and exposes the
authenticated user to route handlers.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from shared.models import AuthenticatedUser
from modules.auth.sessions import SessionManager

from ..dependencies import get_session_manager

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    sessions: SessionManager = Depends(get_session_manager),
) -> AuthenticatedUser:
    """
    Dependency that requires authentication.

    Use this for endpoints that require a logged-in user. Session errors
    propagate and are answered with 401 by the error handlers.

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    token = credentials.credentials if credentials else None
    return sessions.authenticate(token)
