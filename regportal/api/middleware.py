"""API middleware and exception handlers."""
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..config import settings
from ..core.exceptions import (
    BaseAPIException,
    InternalError,
    RateLimitExceeded,
    ValidationFailedError,
)
from ..core.logging import RequestLogger, SecurityLogger
from ..schemas.common import ErrorResponse


def error_response(exc: BaseAPIException) -> JSONResponse:
    """Render an API exception in the common error envelope."""
    body = ErrorResponse(
        error=exc.message,
        error_code=exc.error_code,
        details=exc.details,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(body, by_alias=True),
        headers=exc.headers,
    )


async def api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    return error_response(exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as a validation failure."""
    errors = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.setdefault(".".join(location) or "body", []).append(error.get("msg"))
    return error_response(
        ValidationFailedError(
            "Invalid request",
            fields=list(errors),
            details={"errors": errors},
        )
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests and responses."""
    
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Generate request ID
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        
        # Log request
        start_time = time.time()
        RequestLogger.log_request(
            method=request.method,
            path=str(request.url.path),
            request_id=request_id,
            extra_data={
                "query_params": dict(request.query_params),
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent")
            }
        )
        
        # Process request
        response = await call_next(request)
        
        # Calculate response time
        response_time_ms = (time.time() - start_time) * 1000
        
        # Log response
        RequestLogger.log_response(
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            response_time_ms=response_time_ms,
            request_id=request_id
        )
        
        # Add request ID to response headers
        response.headers["X-Request-ID"] = request_id
        
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last-resort handler for exceptions no handler claimed."""
    
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        
        except BaseAPIException as e:
            return error_response(e)
        
        except Exception as e:
            # Handle unexpected exceptions
            details = {"message": str(e)} if settings.debug else {}
            return error_response(InternalError(details=details))


class RateLimitingMiddleware(BaseHTTPMiddleware):
    """Simple in-memory rate limiting middleware."""
    
    def __init__(self, app, requests_per_minute: int = 60, window_seconds: int = 60):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.window_seconds = window_seconds
        self.request_times = {}  # client_ip -> list of request times
        self.last_sweep = time.time()
    
    def _sweep(self, current_time: float) -> None:
        """Forget clients with no requests inside the window."""
        self.request_times = {
            ip: times for ip, times in self.request_times.items()
            if times and current_time - times[-1] < self.window_seconds
        }
        self.last_sweep = current_time
    
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not settings.api.rate_limit_enabled:
            return await call_next(request)
        
        client_ip = request.client.host if request.client else "unknown"
        current_time = time.time()
        if current_time - self.last_sweep >= self.window_seconds:
            self._sweep(current_time)
        
        # Drop requests outside the window, and idle clients with them
        recent = [
            req_time for req_time in self.request_times.pop(client_ip, [])
            if current_time - req_time < self.window_seconds
        ]
        if recent:
            self.request_times[client_ip] = recent
        
        # Check rate limit
        if len(recent) >= self.requests_per_minute:
            SecurityLogger.log_rate_limit_exceeded(
                ip_address=client_ip,
                path=str(request.url.path)
            )
            return error_response(RateLimitExceeded())
        
        # Add current request time
        self.request_times.setdefault(client_ip, []).append(current_time)
        
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to responses."""
    
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        
        # Add security headers
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        
        return response
