"""
Background Task Runner

Runs fire-and-forget coroutines (memory archival) detached from the
request that submitted them.

ARCHITECTURE: Submitted tasks are held in a set until they finish so
the event loop cannot garbage-collect them mid-flight. Failures are
logged, never raised to the submitter. On shutdown pending tasks get a
bounded drain and are then cancelled.
"""

import asyncio
from typing import Any, Coroutine, Optional

from kokoro.config.logging_config import get_logger

logger = get_logger(__name__)


class BackgroundTaskRunner:
    """
    Owns detached asyncio tasks for the application lifetime.

    Usage:
        runner = BackgroundTaskRunner()
        runner.submit(archiver.archive(turn), name="archive")
        ...
        await runner.shutdown(timeout=5.0)
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(
        self,
        coro: Coroutine[Any, Any, Any],
        name: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        """
        Schedule a coroutine as a detached task.

        Returns:
            The task, or None if the runner is shut down
        """
        if self._closed:
            logger.warning("Background task rejected after shutdown", task=name)
            coro.close()
            return None

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            logger.debug("Background task cancelled", task=task.get_name())
            return

        error = task.exception()
        if error is not None:
            logger.error(
                "Background task failed",
                task=task.get_name(),
                error_type=type(error).__name__,
                error=str(error),
            )

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for currently pending tasks (tests and shutdown)."""
        if not self._tasks:
            return
        await asyncio.wait(set(self._tasks), timeout=timeout)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Stop accepting work, drain for up to timeout, cancel the rest."""
        self._closed = True

        if self._tasks:
            logger.info("Draining background tasks", pending=len(self._tasks))
            await self.drain(timeout)

        leftover = list(self._tasks)
        for task in leftover:
            task.cancel()
        if leftover:
            await asyncio.gather(*leftover, return_exceptions=True)
            logger.warning("Background tasks cancelled at shutdown", count=len(leftover))
