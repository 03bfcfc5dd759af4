"""
Composable lifespan for FastAPI.

Infrastructure modules register async context managers with ``@manager.add``;
the app runs them in registration order on startup, unwinds them in reverse
on shutdown, and exposes the merged state dict as ``request.state``.
"""

from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Callable

from fastapi import FastAPI

LifespanFactory = Callable[[], AsyncContextManager[dict[str, Any] | None]]


class LifespanManager:
    """Collects lifespan factories and runs them as one."""

    def __init__(self):
        self._lifespans: list[LifespanFactory] = []

    def add(self, lifespan: LifespanFactory) -> LifespanFactory:
        """
        Register a lifespan factory.

        Usage:
            @manager.add
            @asynccontextmanager
            async def setup_db():
                # startup
                yield {"session_maker": session_maker}
                # shutdown
        """
        self._lifespans.append(lifespan)
        return lifespan

    @property
    def registered(self) -> list[str]:
        return [lifespan.__name__ for lifespan in self._lifespans]

    @asynccontextmanager
    async def __call__(self, app: FastAPI) -> AsyncIterator[dict[str, Any]]:
        async with AsyncExitStack() as stack:
            state: dict[str, Any] = {}
            for lifespan in self._lifespans:
                state.update(await stack.enter_async_context(lifespan()) or {})
            yield state


manager = LifespanManager()
