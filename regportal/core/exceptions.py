"""Custom exceptions for the application."""
from typing import Dict, List, Optional


class BaseAPIException(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = None,
        details: dict = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)


class DuplicateIdentityError(BaseAPIException):
    """Email or username already belongs to another account."""

    MESSAGES = {
        "email": "Email already registered",
        "username": "Username already exists",
    }

    def __init__(self, field: str, message: str = None):
        self.field = field
        super().__init__(
            message=message or self.MESSAGES.get(field, f"{field} already exists"),
            status_code=409,
            error_code=f"DUPLICATE_{field.upper()}",
            details={"field": field}
        )


class NotFoundError(BaseAPIException):
    """Resource not found error.

    Unknown accounts are reported as a bad request on the public endpoints.
    """

    def __init__(self, message: str = "Resource not found", details: dict = None):
        super().__init__(
            message=message,
            status_code=400,
            error_code="NOT_FOUND",
            details=details
        )


class UnauthorizedError(BaseAPIException):
    """Authentication error."""

    def __init__(self, message: str = "Unauthorized", details: dict = None):
        super().__init__(
            message=message,
            status_code=401,
            error_code="UNAUTHORIZED",
            details=details,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ValidationFailedError(BaseAPIException):
    """Validation error."""

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[List[str]] = None,
        details: dict = None
    ):
        self.fields = list(fields or [])
        details = dict(details or {})
        if self.fields:
            details.setdefault("fields", self.fields)
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_FAILED",
            details=details
        )


class StoreUnavailableError(BaseAPIException):
    """Credential store not initialized or unreachable."""

    def __init__(self, message: str = "Database not ready. Please try again later.", details: dict = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="STORE_UNAVAILABLE",
            details=details,
            headers={"Retry-After": "5"}
        )


class InternalError(BaseAPIException):
    """Unclassified server-side failure."""

    def __init__(self, message: str = "Internal server error", details: dict = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="INTERNAL_ERROR",
            details=details
        )


class RateLimitExceeded(BaseAPIException):
    """Rate limit exceeded error."""

    def __init__(self, message: str = "Rate limit exceeded", details: dict = None):
        super().__init__(
            message=message,
            status_code=429,
            error_code="RATE_LIMIT_EXCEEDED",
            details=details
        )
