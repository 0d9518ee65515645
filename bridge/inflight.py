# bridge/inflight.py
import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable


class InflightRegistry:
    """
    At most one running task per key; concurrent callers share its result.
    The entry is dropped as soon as the task finishes, successfully or not.
    """

    def __init__(self) -> None:
        self._tasks: Dict[Hashable, asyncio.Task] = {}

    def in_flight(self, key: Hashable) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    async def run_deduplicated(self, key: Hashable, fn: Callable[[], Awaitable[Any]]) -> Any:
        # no await between lookup and insert: check-and-register is atomic on the loop
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.create_task(self._run(key, fn), name=f"inflight:{key}")
            self._tasks[key] = task
        # shield: a cancelled waiter must not cancel the shared run
        return await asyncio.shield(task)

    async def _run(self, key: Hashable, fn: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await fn()
        finally:
            if self._tasks.get(key) is asyncio.current_task():
                del self._tasks[key]
