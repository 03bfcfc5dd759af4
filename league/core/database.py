from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from loguru import logger
from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from league.config import get_settings
from league.core.lifespan import manager


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models"""

    pass


settings = get_settings()

# Dialects that can express INSERT ... ON CONFLICT DO UPDATE ... RETURNING
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_insert(db: AsyncSession, table: Table) -> Any:
    """Build a dialect-specific INSERT that supports ``on_conflict_do_update``.

    Parameters
    ----------
    db : AsyncSession
        Session whose bind decides the dialect
    table : Table
        Target table

    Returns
    -------
    Insert
        PostgreSQL or SQLite insert construct

    Raises
    ------
    NotImplementedError
        If the bound database has no atomic upsert
    """
    dialect = db.get_bind().dialect.name
    try:
        insert = _UPSERT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Atomic upsert is not supported on {dialect}")
    return insert(table)


def create_engine(url: str) -> AsyncEngine:
    """Create the async engine, pooling only for server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url)
    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        # echo=settings.ENVIRONMENT == "local",
    )


@manager.add
@asynccontextmanager
async def database_lifespan() -> AsyncIterator[dict]:
    """
    Manage database connection lifecycle.
    Creates connection pool on startup, disposes on shutdown.
    """
    logger.info("Initializing database connection pool")

    # Startup - create engine and session maker
    engine = create_engine(settings.DATABASE_URL)

    session_maker = async_sessionmaker(
        engine,
        expire_on_commit=False,
    )

    logger.info("Database connection pool ready")

    # Yield state to be available in request.state
    yield {"session_maker": session_maker}

    # Shutdown - cleanup
    logger.info("Shutting down database connection pool")
    await engine.dispose()
    logger.info("Database disconnected")
