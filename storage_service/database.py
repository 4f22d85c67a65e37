import logging
from typing import Optional

from sqlalchemy import text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, Session

from storage_service.config import settings
from storage_service.models import Base

logger = logging.getLogger(__name__)


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    future=True
)

# Create async session factory
AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

_sync_engine: Optional[Engine] = None
_sync_session_factory: Optional[sessionmaker] = None


def sync_database_url(url: str) -> str:
    """Convert an async driver URL into its blocking counterpart."""
    return url.replace("+asyncpg", "").replace("+aiosqlite", "")


def get_sync_engine() -> Engine:
    """Engine used by Celery tasks, created on first use."""
    global _sync_engine
    if _sync_engine is None:
        _sync_engine = create_engine(
            sync_database_url(settings.database_url),
            echo=settings.debug,
            pool_pre_ping=True,
            future=True
        )
    return _sync_engine


def SessionLocal() -> Session:
    """Open a blocking session for worker code."""
    global _sync_session_factory
    if _sync_session_factory is None:
        _sync_session_factory = sessionmaker(
            get_sync_engine(),
            class_=Session,
            expire_on_commit=False
        )
    return _sync_session_factory()


async def init_db():
    """Create all tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema is up to date")


async def ping_db() -> bool:
    """Return True when the database answers a trivial query"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Database ping failed: %s", e)
        return False
    return True


async def get_db():
    """Dependency to get database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
