"""Pydantic schemas module."""
from .auth import (
    RegistrationRequest,
    RegistrationResponse,
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    ResetPasswordRequest,
)
from .user import (
    UserResponse,
    ProfileUpdateRequest,
    ProfileResponse,
    RegistrationsResponse,
    LoginAttemptResponse,
    LoginHistoryResponse,
)
from .common import (
    ErrorResponse,
    HealthResponse,
    SuccessResponse,
)

__all__ = [
    # Auth
    "RegistrationRequest",
    "RegistrationResponse",
    "LoginRequest",
    "LoginResponse",
    "PasswordChangeRequest",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "ResetPasswordRequest",
    # User
    "UserResponse",
    "ProfileUpdateRequest",
    "ProfileResponse",
    "RegistrationsResponse",
    "LoginAttemptResponse",
    "LoginHistoryResponse",
    # Common
    "ErrorResponse",
    "HealthResponse",
    "SuccessResponse",
]
