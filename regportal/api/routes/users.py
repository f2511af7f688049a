"""Profile and registration listing routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.security import get_auth_flow, get_bearer_token, get_current_user
from ...models.user import User
from ...schemas.user import (
    LoginAttemptResponse,
    LoginHistoryResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    RegistrationsResponse,
    UserResponse,
)
from ...services.auth_flow import AuthFlowController

router = APIRouter(tags=["Users"])


@router.get("/registrations", response_model=RegistrationsResponse)
async def list_registrations(
    auth_flow: AuthFlowController = Depends(get_auth_flow)
):
    """List all registrations, newest first."""
    users = await auth_flow.list_users()
    
    return RegistrationsResponse(
        count=len(users),
        registrations=[UserResponse.model_validate(user) for user in users],
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    profile_update: ProfileUpdateRequest,
    token: Optional[str] = Depends(get_bearer_token),
    auth_flow: AuthFlowController = Depends(get_auth_flow)
):
    """Update mutable profile fields of the current user."""
    user = await auth_flow.update_profile(token, profile_update)
    
    return ProfileResponse(message="Profile updated successfully", user=user)


@router.get("/login-history", response_model=LoginHistoryResponse)
async def get_login_history(
    limit: int = Query(10, ge=1, le=100),
    token: Optional[str] = Depends(get_bearer_token),
    auth_flow: AuthFlowController = Depends(get_auth_flow)
):
    """Recent login attempts of the current user."""
    attempts = await auth_flow.login_history(token, limit)
    
    return LoginHistoryResponse(
        count=len(attempts),
        attempts=[LoginAttemptResponse.model_validate(attempt) for attempt in attempts],
    )
