"""Helpers for running background coroutines on the event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from utils.log_utils import tprint


def _report_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        tprint(f"[TASKS][ERROR] Background task {task.get_name()!r} failed: {exc!r}")


class TaskTracker:
    """Keeps references to fire-and-forget tasks so they can be awaited or cancelled."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_report_failure)
        return task

    def run_later(
        self,
        delay_secs: float,
        factory: Callable[[], Awaitable[Any]],
        *,
        name: str | None = None,
    ) -> asyncio.Task:
        """Run ``factory()`` after ``delay_secs`` without blocking the caller."""

        async def _delayed() -> Any:
            await asyncio.sleep(max(0.0, delay_secs))
            return await factory()

        return self.spawn(_delayed(), name=name)

    def pending(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait until no tracked task remains, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
