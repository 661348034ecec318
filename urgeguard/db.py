"""
UrgeGuard Database Layer
Single local SQLite database holding the append-only event log,
the onboarding profile and intervention history.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from urgeguard.config import settings

logger = logging.getLogger("urgeguard")


def _get_connect_args() -> dict:
    """Get database-specific connection arguments."""
    if "sqlite" in settings.db_url:
        return {"check_same_thread": False}
    return {}


engine = create_async_engine(
    settings.db_url,
    echo=False,
    future=True,
    pool_pre_ping=True,  # Verify connections before use
    connect_args=_get_connect_args(),
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def create_db_and_tables(bind=None):
    """Initialize the database schema. Idempotent."""
    # Register table metadata
    from urgeguard import models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("database_tables_created", extra={"db_url": str(target.url)})


@asynccontextmanager
async def get_db_session(factory=None) -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional session with automatic cleanup.
    Commits on success, rolls back and re-raises on error.
    """
    session = (factory or async_session)()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def verify_database_connection(bind=None) -> dict:
    """Health check for the local database."""
    from sqlalchemy import text

    status = {"sqlite": False, "errors": []}
    try:
        async with (bind or engine).connect() as conn:
            await conn.execute(text("SELECT 1"))
        status["sqlite"] = True
    except Exception as e:
        status["errors"].append(f"SQLite: {str(e)}")
    return status
