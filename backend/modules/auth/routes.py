"""
Authentication API endpoints.

Each handler calls the auth service and maps an Err result through the
shared error table. Tokens that would normally be emailed are echoed in
the response body only in development.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_app_settings, get_auth_service, get_session_manager
from api.errors import error_response
from api.middleware.auth import get_current_user
from api.middleware.rate_limit import get_client_ip
from api.models import ERROR_RESPONSES
from shared.config import Settings
from shared.models import AuthenticatedUser
from shared.result import Err

from .interfaces import IAuthService
from .models import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    VerifyEmailRequest,
    VerifyEmailResponse,
    ForgotPasswordResponse,
)
from .sessions import SessionManager

router = APIRouter(responses=ERROR_RESPONSES)

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, a password reset link has been sent."


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: RegisterRequest,
    ip: str = Depends(get_client_ip),
    service: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> RegisterResponse | JSONResponse:
    """Create an account and send its verification link."""
    result = await service.register(body, ip)
    if isinstance(result, Err):
        return error_response(result.error)

    registration = result.value
    return RegisterResponse(
        user=registration.user,
        message="Account created. Please check your email to verify your address.",
        verification_token=registration.verification_token if settings.is_development else None,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    ip: str = Depends(get_client_ip),
    service: IAuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_session_manager),
) -> LoginResponse | JSONResponse:
    """Exchange email and password for a session token."""
    result = await service.authenticate(body.email, body.password, ip)
    if isinstance(result, Err):
        return error_response(result.error)

    user = result.value
    session = sessions.issue(user)
    return LoginResponse(
        user=user,
        access_token=session.access_token,
        token_type=session.token_type,
        expires_at=session.expires_at,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    ip: str = Depends(get_client_ip),
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAuthService = Depends(get_auth_service),
) -> MessageResponse:
    """
    Record the end of a session.

    Session tokens are stateless; the client discards its copy.
    """
    await service.logout(user.id, user.email, ip)
    return MessageResponse(message="Signed out")


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    ip: str = Depends(get_client_ip),
    service: IAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
) -> ForgotPasswordResponse | JSONResponse:
    """Start a password reset. The answer is the same whether or not the account exists."""
    result = await service.request_password_reset(body.email, ip)
    if isinstance(result, Err):
        return error_response(result.error)

    return ForgotPasswordResponse(
        message=FORGOT_PASSWORD_MESSAGE,
        reset_token=result.value if settings.is_development else None,
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    ip: str = Depends(get_client_ip),
    service: IAuthService = Depends(get_auth_service),
) -> MessageResponse | JSONResponse:
    """Set a new password using a reset token."""
    result = await service.reset_password(body.token, body.password, ip)
    if isinstance(result, Err):
        return error_response(result.error)

    return MessageResponse(message="Password has been reset. You can now sign in.")


@router.post("/verify-email", response_model=VerifyEmailResponse)
async def verify_email(
    body: VerifyEmailRequest,
    ip: str = Depends(get_client_ip),
    service: IAuthService = Depends(get_auth_service),
) -> VerifyEmailResponse | JSONResponse:
    """Confirm an email address using a verification token."""
    result = await service.verify_email(body.token, ip)
    if isinstance(result, Err):
        return error_response(result.error)

    return VerifyEmailResponse(message="Email verified", email=result.value)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAuthService = Depends(get_auth_service),
) -> MessageResponse | JSONResponse:
    """Change the signed-in user's password."""
    result = await service.change_password(user.id, body.current_password, body.new_password)
    if isinstance(result, Err):
        return error_response(result.error)

    return MessageResponse(message="Password changed")
