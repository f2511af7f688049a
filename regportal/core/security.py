"""Request-scoped dependencies for authentication."""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..services.auth_flow import AuthFlowController
from ..services.credential_store import CredentialStore
from .logging import SecurityLogger

# Missing credentials are reported by the auth flow as 401
security = HTTPBearer(auto_error=False)


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_auth_flow(store: CredentialStore = Depends(get_credential_store)) -> AuthFlowController:
    return AuthFlowController(store)


async def get_bearer_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Raw bearer token from the Authorization header, if any."""
    if credentials is None:
        SecurityLogger.log_unauthorized_access(
            path=str(request.url.path),
            method=request.method,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
            reason="missing_bearer_token",
        )
        return None
    return credentials.credentials


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    auth_flow: AuthFlowController = Depends(get_auth_flow),
) -> User:
    """Get current authenticated user."""
    return await auth_flow.authenticate(token)


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None
