import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class TokenSweeper:
    """Periodically refreshes credentials that are about to expire.

    Optional: tokens are always refreshed lazily before use, the sweep only
    moves that work off the request path.
    """

    def __init__(self, sweep: Callable[[], Awaitable[int]], interval_seconds: float):
        self._sweep = sweep
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="token-sweeper")
        logger.info("Token sweeper started, interval=%ss", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Token sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._sweep()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Token sweep failed")
