"""Database engine, session management and lifecycle state."""
import enum
import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import settings
from ..models.base import Base

logger = logging.getLogger(__name__)


class DatabaseState(str, enum.Enum):
    """Lifecycle of the credential database."""
    
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


# Global engine instance
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_state: DatabaseState = DatabaseState.UNINITIALIZED


def get_database_state() -> DatabaseState:
    """Return the current database lifecycle state."""
    return _state


def get_engine() -> AsyncEngine:
    """Get or create the database engine."""
    global _engine
    
    if _engine is None:
        options = {
            "echo": settings.database.echo,
            "pool_pre_ping": True,
        }
        if not settings.database.is_sqlite:
            options.update(
                pool_size=settings.database.pool_size,
                max_overflow=settings.database.max_overflow,
                pool_recycle=3600,  # 1 hour
            )
        _engine = create_async_engine(settings.database.url, **options)
        logger.info("Database engine created")
    
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _session_factory
    
    if _session_factory is None:
        engine = get_engine()
        _session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Session factory created")
    
    return _session_factory


async def init_db() -> DatabaseState:
    """Create the tables and move the database to READY.
    
    A failure leaves the service running in the FAILED state so requests
    can be answered with a retryable status instead of crashing the process.
    """
    global _state
    
    try:
        engine = get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception:
        logger.exception("Failed to initialize database")
        _state = DatabaseState.FAILED
        return _state
    
    _state = DatabaseState.READY
    logger.info("Database tables created")
    return _state


async def close_db() -> None:
    """Close the database connections."""
    global _engine, _session_factory, _state
    
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connections closed")
    _state = DatabaseState.UNINITIALIZED
