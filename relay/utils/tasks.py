from __future__ import annotations

import asyncio
import logging
from typing import Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Fire-and-forget task holder.

    Keeps a strong reference to each task until it finishes so the loop does
    not garbage-collect it mid-flight. Nothing is awaited or retried.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine, *, name: Optional[str] = None) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("%s: no running event loop; dropping %s", self.name, name or "task")
            return None
        task = loop.create_task(coro, name=name or self.name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float = 2.0) -> None:
        if not self._tasks:
            return
        _, still_pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in still_pending:
            task.cancel()
