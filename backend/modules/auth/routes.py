"""
Authentication API endpoints.

Registration, login, token refresh, email verification, password reset
and the current user's profile. Errors are raised as module exceptions and
rendered by the application's exception handlers.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from api.dependencies import get_auth_service
from api.middleware.auth import email_verification_status, get_current_user
from api.models.responses import APIResponse, ok
from modules.users.models import UserResponse
from shared.exceptions import BadRequestError
from shared.models import AuthenticatedUser

from .interfaces import IAuthService
from .exceptions import InvalidVerificationTokenError
from .models import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordInstructions,
    ResetPasswordRequest,
    TokenResponse,
    VerifyEmailRequest,
)

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If your email is registered, you will receive a password reset link shortly"


@router.post(
    "/register",
    response_model=APIResponse[AuthResponse],
    response_model_exclude_none=True,
    status_code=201,
)
async def register(
    request: RegisterRequest,
    service: IAuthService = Depends(get_auth_service),
):
    """
    Create an account.

    Returns the new user with an access/refresh token pair. A verification
    email is sent; failure to send it does not fail the registration.
    """
    result = await service.register(request.name, request.email, request.password)
    return ok("User registered successfully", result)


@router.post(
    "/login",
    response_model=APIResponse[AuthResponse],
    response_model_exclude_none=True,
)
async def login(
    request: LoginRequest,
    service: IAuthService = Depends(get_auth_service),
):
    """Exchange email and password for a token pair."""
    result = await service.login(request.email, request.password)
    return ok("Login successful", result)


@router.post(
    "/refresh",
    response_model=APIResponse[TokenResponse],
    response_model_exclude_none=True,
)
async def refresh(
    request: RefreshTokenRequest,
    service: IAuthService = Depends(get_auth_service),
):
    """Exchange a refresh token for a new access token."""
    result = await service.refresh_token(request.refresh_token)
    return ok("Token refreshed successfully", result)


@router.get(
    "/me",
    response_model=APIResponse[UserResponse],
    response_model_exclude_none=True,
)
async def get_me(
    user: AuthenticatedUser = Depends(get_current_user),
    _verified: Optional[bool] = Depends(email_verification_status),
    service: IAuthService = Depends(get_auth_service),
):
    """
    Get the current user's profile.

    Unverified accounts get the profile plus X-Email-Verification-* headers.
    """
    profile = await service.get_profile(user.id)
    return ok("Profile retrieved successfully", profile)


# -----------------------------------------------------------------------------
# Email verification
# -----------------------------------------------------------------------------


async def _verify(token: Optional[str], service: IAuthService):
    if not token:
        raise InvalidVerificationTokenError("Verification token is required")
    await service.verify_email(token)
    return ok("Email verified successfully")


@router.get(
    "/verify-email",
    response_model=APIResponse[None],
    response_model_exclude_none=True,
)
async def verify_email_link(
    token: Optional[str] = Query(default=None),
    service: IAuthService = Depends(get_auth_service),
):
    """Verify an email address from the link in the verification email."""
    return await _verify(token, service)


@router.post(
    "/verify-email",
    response_model=APIResponse[None],
    response_model_exclude_none=True,
)
async def verify_email(
    token: Optional[str] = Query(default=None),
    request: Optional[VerifyEmailRequest] = Body(default=None),
    service: IAuthService = Depends(get_auth_service),
):
    """Verify an email address. The token may be given in the query or the body."""
    return await _verify(token or (request.token if request else None), service)


@router.post(
    "/resend-verification",
    response_model=APIResponse[None],
    response_model_exclude_none=True,
)
async def resend_verification(
    request: ResendVerificationRequest,
    service: IAuthService = Depends(get_auth_service),
):
    """Issue a new verification token and email it."""
    await service.resend_verification_email(request.email)
    return ok("Verification email sent successfully")


# -----------------------------------------------------------------------------
# Password reset
# -----------------------------------------------------------------------------


@router.post(
    "/forgot-password",
    response_model=APIResponse[None],
    response_model_exclude_none=True,
)
async def forgot_password(
    request: ForgotPasswordRequest,
    service: IAuthService = Depends(get_auth_service),
):
    """
    Start a password reset.

    The response is the same whether or not the email is registered.
    """
    await service.forgot_password(request.email)
    return ok(FORGOT_PASSWORD_MESSAGE)


@router.get(
    "/reset-password",
    response_model=APIResponse[ResetPasswordInstructions],
    response_model_exclude_none=True,
)
async def reset_password_link(
    token: Optional[str] = Query(default=None),
    service: IAuthService = Depends(get_auth_service),
):
    """
    Landing point for the link in the reset email.

    Checks the token's format and explains how to complete the reset.
    The token is not consumed.
    """
    if not token:
        raise BadRequestError("Password reset token is required", code="MISSING_RESET_TOKEN")
    service.validate_reset_token(token)

    instructions = ResetPasswordInstructions(
        token=token,
        instructions=(
            "Send a POST request to this same endpoint with 'token' and "
            "'password' in the request body"
        ),
        example={
            "method": "POST",
            "body": {"token": token, "password": "YourNewPassword123!"},
        },
    )
    return ok(
        "Password reset token is valid. Please use POST method with your new "
        "password to complete the reset.",
        instructions,
    )


@router.post(
    "/reset-password",
    response_model=APIResponse[None],
    response_model_exclude_none=True,
)
async def reset_password(
    request: ResetPasswordRequest,
    token: Optional[str] = Query(default=None),
    service: IAuthService = Depends(get_auth_service),
):
    """Set a new password. The token may be given in the body or the query."""
    reset_token = request.token or token
    if not reset_token:
        raise BadRequestError("Password reset token is required", code="MISSING_RESET_TOKEN")
    await service.reset_password(reset_token, request.password)
    return ok("Password reset successfully")
