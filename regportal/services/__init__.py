"""Services module."""
from .credential_store import CredentialStore
from .auth_flow import AuthFlowController

__all__ = [
    "CredentialStore",
    "AuthFlowController",
]
