"""Database session dependency."""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import StoreUnavailableError
from .engine import DatabaseState, get_database_state, get_session_factory


async def require_database() -> None:
    """Reject requests until the database has been initialized."""
    if get_database_state() is not DatabaseState.READY:
        raise StoreUnavailableError("Database not ready. Please try again later.")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database dependency for FastAPI."""
    await require_database()
    session_factory = get_session_factory()
    session = session_factory()
    
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
