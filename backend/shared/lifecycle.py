"""
Teardown discipline for asynchronous fetches.

A view or component that issues a fetch may be torn down before the
result arrives. FetchScope runs such fetches and guarantees that once
the scope is closed, in-flight tasks are cancelled and any result that
still arrives is dropped instead of being applied to stale state.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FetchScope:
    """Owns the fetches of one component for the lifetime of that component."""

    def __init__(self, name: str = "scope"):
        self._name = name
        self._closed = False
        self._tasks: set[asyncio.Task] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(
        self,
        fetch: Awaitable[T],
        apply: Optional[Callable[[T], None]] = None,
    ) -> Optional[T]:
        """
        Await a fetch and apply its result if the scope is still open.

        Returns the result, or None when the scope closed first.
        Exceptions raised by the fetch propagate to the caller.
        """
        if self._closed:
            logger.debug(f"{self._name}: fetch skipped, scope already closed")
            if asyncio.iscoroutine(fetch):
                fetch.close()
            return None

        task = asyncio.ensure_future(fetch)
        self._tasks.add(task)
        try:
            result = await task
        except asyncio.CancelledError:
            if self._closed:
                return None
            raise
        finally:
            self._tasks.discard(task)

        if self._closed:
            logger.debug(f"{self._name}: discarding result that arrived after teardown")
            return None

        if apply is not None:
            apply(result)
        return result

    def close(self) -> None:
        """Close the scope and cancel whatever is still in flight."""
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
