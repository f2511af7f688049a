"""Database models module."""
from .base import Base
from .user import User
from .history import LoginAttempt, PasswordHistory

__all__ = [
    "Base",
    "User",
    "PasswordHistory",
    "LoginAttempt",
]
