import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    Collapses concurrent calls for the same key into one in-flight task.

    The first caller for a key starts the work; callers arriving while it runs
    await the same task and receive the same result or exception. The task is
    shielded, so cancelling any one caller does not abort the shared work.
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Task[T]] = {}

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    async def run(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
            logger.debug("Started shared task for %s", key)
        else:
            logger.debug("Joining in-flight task for %s", key)
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[T]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Marks the exception as retrieved; callers already received it.
        if not task.cancelled():
            task.exception()
