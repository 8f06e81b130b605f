"""Tracking for detached asyncio tasks."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

from loguru import logger


class BackgroundTasks:
    """
    A set of detached tasks that belong to one owner.

    Tasks are started with spawn() and forgotten by the caller. Failures are
    logged when the task finishes. The owner drains or cancels the whole set
    on teardown so nothing outlives it.
    """

    def __init__(self, name: str):
        self.name = name
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], label: str = "") -> asyncio.Task:
        """Schedule *coro* on the running loop and track it until it finishes."""
        task = asyncio.get_running_loop().create_task(coro, name=f"{self.name}:{label}" if label else None)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background task {} failed: {}", task.get_name(), exc)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for the tasks currently tracked (not ones they spawn later)."""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)

    async def cancel_all(self) -> None:
        """Cancel every tracked task and wait until they have unwound."""
        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current]
        if not tasks:
            return
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("Cancelled {} background task(s) in {}", len(tasks), self.name)

    def __len__(self) -> int:
        return len(self._tasks)
