import asyncio
import logging
from typing import Awaitable, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskSupervisor:
    """
    Runs fire-and-forget coroutines as asyncio tasks.

    Holds a reference to every task until it finishes and logs whatever it
    raises, so a failing side effect never reaches the caller or the loop's
    "exception was never retrieved" handler.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable, name: str) -> asyncio.Task:
        task = asyncio.create_task(self._guard(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Awaitable, name: str):
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Background task failed", extra={"task": name})

    async def drain(self, timeout: Optional[float] = None) -> int:
        """Wait for in-flight tasks; returns how many were still running at the deadline."""
        if not self._tasks:
            return 0
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_running:
            logger.warning(
                "Dropping unfinished background tasks",
                extra={"count": len(still_running)}
            )
        return len(still_running)
