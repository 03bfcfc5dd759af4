"""FastAPI dependencies for accessing application state."""

from typing import AsyncIterator, cast

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Yield a session from the session maker the database lifespan put on
    ``request.state``; rolled back if the handler raises.

    Usage:
        @router.get("/activities/recent")
        async def recent(db: AsyncSession = Depends(get_session)):
            ...
    """
    session_maker = cast(async_sessionmaker, request.state.session_maker)
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
