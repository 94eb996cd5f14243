"""
Deferred Task Scheduler

Fire-and-forget delayed execution on the running event loop. Used for the
second delete of delayed double deletion.
"""

import asyncio
from typing import Awaitable, Callable, Set

import structlog

logger = structlog.get_logger(__name__)

DeferredFn = Callable[[], Awaitable[None]]


class DeferredTaskScheduler:
    """
    Runs each scheduled function exactly once after its delay.

    No retries and no per-task cancellation. Scheduled functions are
    expected to swallow their own errors; anything that escapes is logged.
    Task references are held until completion so pending work is not
    garbage collected mid-flight.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of scheduled tasks that have not finished yet."""
        return len(self._tasks)

    def schedule(self, fn: DeferredFn, delay_ms: int) -> None:
        """
        Run ``fn`` once after at least ``delay_ms`` milliseconds.

        Must be called from a running event loop; returns immediately.
        """
        task = asyncio.get_running_loop().create_task(self._run(fn, delay_ms))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    async def _run(self, fn: DeferredFn, delay_ms: int) -> None:
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)
        await fn()

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Deferred task failed",
                error=str(error),
                error_type=type(error).__name__,
            )

    async def drain(self) -> None:
        """Wait for every task scheduled so far, including ones they schedule."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> int:
        """Cancel outstanding tasks; returns how many were dropped."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Dropped pending deferred tasks", count=len(tasks))
        return len(tasks)
