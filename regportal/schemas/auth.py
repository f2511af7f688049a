"""Authentication schemas.

Request fields are optional at the schema level so that missing values are
reported together by the auth flow as a single validation failure.
"""
from datetime import date
from typing import Optional

from pydantic import Field, field_validator

from .common import BaseSchema, EmailAddress
from .user import UserResponse


REQUIRED_REGISTRATION_FIELDS = (
    "first_name", "last_name", "date_of_birth", "gender",
    "email", "phone", "address", "city", "state", "zipcode", "country",
    "username", "password", "confirm_password", "terms", "privacy",
)


class RegistrationRequest(BaseSchema):
    """Registration form payload."""
    
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    email: Optional[EmailAddress] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None
    terms: Optional[bool] = None
    privacy: Optional[bool] = None
    newsletter: Optional[bool] = False
    
    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
    
    def missing_fields(self) -> list[str]:
        """Wire names of required fields that are absent or empty."""
        missing = []
        for name in REQUIRED_REGISTRATION_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str):
                value = value.strip()
            if not value:
                missing.append(type(self).model_fields[name].alias or name)
        return missing
    
    def profile(self) -> dict:
        """Column values for a new user, credentials excluded."""
        profile = self.model_dump(
            exclude={"password", "confirm_password", "terms", "privacy"}
        )
        profile["newsletter"] = bool(self.newsletter)
        return profile


class RegistrationResponse(BaseSchema):
    success: bool = True
    message: str
    user_id: int


class LoginRequest(BaseSchema):
    """Login request schema; ``username`` accepts a username or an email."""
    
    username: Optional[str] = None
    password: Optional[str] = None
    remember_me: bool = False


class LoginResponse(BaseSchema):
    """Token response schema."""
    
    success: bool = True
    message: str = "Login successful"
    token: str = Field(..., description="Bearer token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration in seconds")
    user: UserResponse = Field(..., description="User information")


class PasswordChangeRequest(BaseSchema):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class ForgotPasswordRequest(BaseSchema):
    email: Optional[str] = None


class ForgotPasswordResponse(BaseSchema):
    """Reset token and user id are only present when returned in-band."""
    
    success: bool = True
    message: str
    reset_token: Optional[str] = None
    user_id: Optional[int] = None


class ResetPasswordRequest(BaseSchema):
    email: Optional[str] = None
    reset_token: Optional[str] = None
    new_password: Optional[str] = None
