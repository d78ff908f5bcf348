# drama_api/db/session.py
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from drama_api.core.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url


def _engine_options(database_url: str) -> Dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            # A single shared connection keeps the in-memory database alive
            return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        return {}

    connect_args: Dict[str, Any] = {"timeout": settings.DB_CONNECT_TIMEOUT}
    if settings.DB_SSL:
        connect_args["ssl"] = "require"
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": 0,
        "pool_timeout": settings.DB_CONNECT_TIMEOUT,
        "pool_recycle": settings.DB_IDLE_TIMEOUT,
        "connect_args": connect_args,
    }


engine = create_async_engine(
    DATABASE_URL,
    echo=settings.LOG_LEVEL == "DEBUG",  # Enable SQL logging in debug mode
    **_engine_options(DATABASE_URL)
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that provides a database session.
    The connection goes back to the pool on every exit path.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Commit on success, roll back and re-raise on any error.

        async with transaction(db):
            db.add(...)
    """
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise


async def check_connection() -> bool:
    """Run a trivial query to see whether the database answers"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


async def close_engine() -> None:
    await engine.dispose()
    logger.info("Database pool has ended")
