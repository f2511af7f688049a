"""User and profile schemas."""
from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from .common import BaseSchema, EmailAddress


class UserResponse(BaseSchema):
    """User profile without the password digest."""
    
    id: int = Field(..., description="User ID")
    first_name: str
    last_name: str
    email: str
    username: str
    phone: str
    address: str
    city: str
    state: str
    zipcode: str
    country: str
    date_of_birth: date
    gender: str
    newsletter: bool = False
    registration_date: datetime
    last_login: Optional[datetime] = Field(None, description="Last successful login")
    created_at: datetime
    updated_at: datetime


class ProfileUpdateRequest(BaseSchema):
    """Mutable profile fields; omitted fields are left unchanged."""
    
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailAddress] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=32)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    zipcode: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, min_length=1, max_length=100)


class ProfileResponse(BaseSchema):
    success: bool = True
    message: str
    user: UserResponse


class RegistrationsResponse(BaseSchema):
    """All registered users, newest first."""
    
    count: int
    registrations: List[UserResponse]


class LoginAttemptResponse(BaseSchema):
    id: int
    login_time: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    success: bool


class LoginHistoryResponse(BaseSchema):
    count: int
    attempts: List[LoginAttemptResponse]
