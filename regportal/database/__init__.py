"""Database module."""
from .engine import (
    DatabaseState,
    close_db,
    get_database_state,
    get_engine,
    init_db,
)
from .session import get_db, require_database

__all__ = [
    "DatabaseState",
    "close_db",
    "get_database_state",
    "get_engine",
    "init_db",
    "get_db",
    "require_database",
]
