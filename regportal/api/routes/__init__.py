"""API routers."""
from . import auth, users

__all__ = ["auth", "users"]
