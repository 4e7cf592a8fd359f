"""
Async SQLAlchemy engine and session factory for the postgres backend.

Both stay None when DATABASE_URL is empty, so the in-memory backend imports
this module without needing a database driver connection.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _build_engine() -> Optional[AsyncEngine]:
    settings = get_settings()
    if not settings.DATABASE_URL:
        return None
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )


engine: Optional[AsyncEngine] = _build_engine()

AsyncSessionLocal: Optional[async_sessionmaker] = (
    async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    if engine is not None else None
)


async def init_db(create_tables: bool = True) -> bool:
    """Ping the database and, optionally, create the message tables."""
    if engine is None:
        raise RuntimeError("DATABASE_URL is not configured")

    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if create_tables:
            # Registers the tables on Base.metadata
            from . import models  # noqa: F401
            await conn.run_sync(Base.metadata.create_all)
            logger.info(f"Tables ensured: {', '.join(sorted(Base.metadata.tables))}")

    logger.info("Database connection verified")
    return True


async def dispose_db() -> None:
    if engine is not None:
        await engine.dispose()
        logger.info("Database pool disposed")
