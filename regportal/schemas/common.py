"""Common Pydantic schemas."""
from typing import Annotated, Any, Dict, Optional
from datetime import datetime, timezone

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email


def _check_email(value: str) -> str:
    # Accounts are looked up by the exact address given at registration
    _, normalized = validate_email(value)
    if normalized.lower() != value.lower():
        raise ValueError("value is not a valid email address")
    return value


# Syntax-checked like EmailStr but stored exactly as submitted
EmailAddress = Annotated[str, AfterValidator(_check_email)]


class BaseSchema(BaseModel):
    """Base schema with camelCase wire names."""
    
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ErrorResponse(BaseSchema):
    """Error response schema."""
    
    success: bool = Field(False, description="Success status")
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Dict[str, Any] = Field(default_factory=dict, description="Error details")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SuccessResponse(BaseSchema):
    """Generic success response."""
    
    success: bool = Field(True, description="Success status")
    message: str = Field(..., description="Success message")


class HealthResponse(BaseSchema):
    """Health check response."""
    
    status: str = Field(..., description="Overall health status")
    version: str = Field(..., description="Application version")
    database: str = Field(..., description="Database lifecycle state")
