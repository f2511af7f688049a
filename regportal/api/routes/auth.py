"""Registration and authentication routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Request

from ...core.security import client_ip, get_auth_flow, get_bearer_token
from ...schemas.auth import (
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    RegistrationRequest,
    RegistrationResponse,
    ResetPasswordRequest,
)
from ...schemas.common import SuccessResponse
from ...services.auth_flow import AuthFlowController

router = APIRouter(tags=["Authentication"])


@router.post("/submit", response_model=RegistrationResponse)
async def register_user(
    registration: RegistrationRequest,
    auth_flow: AuthFlowController = Depends(get_auth_flow)
):
    """Register a new user."""
    user_id = await auth_flow.register(registration)
    
    return RegistrationResponse(
        message="Registration successful! You can now login with your credentials.",
        user_id=user_id,
    )


@router.post("/login", response_model=LoginResponse)
async def login_user(
    login_request: LoginRequest,
    request: Request,
    auth_flow: AuthFlowController = Depends(get_auth_flow)
):
    """Login user and return a bearer token."""
    return await auth_flow.login(
        login_request,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/logout", response_model=SuccessResponse)
async def logout_user():
    """Logout user (client-side token disposal)."""
    return SuccessResponse(message="Logged out successfully")


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    password_change: PasswordChangeRequest,
    token: Optional[str] = Depends(get_bearer_token),
    auth_flow: AuthFlowController = Depends(get_auth_flow)
):
    """Change user password."""
    await auth_flow.change_password(token, password_change)
    
    return SuccessResponse(message="Password changed successfully")


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
)
async def forgot_password(
    forgot_request: ForgotPasswordRequest,
    auth_flow: AuthFlowController = Depends(get_auth_flow)
):
    """Issue a password reset token for a registered email."""
    return await auth_flow.forgot_password(forgot_request)


@router.post("/reset-password", response_model=SuccessResponse)
async def reset_password(
    reset_request: ResetPasswordRequest,
    auth_flow: AuthFlowController = Depends(get_auth_flow)
):
    """Set a new password using a reset token."""
    await auth_flow.reset_password(reset_request)
    
    return SuccessResponse(message="Password reset successfully")
